import pytest

from cloudstep.deploy.errors import DuplicateStepError, InvalidStepError
from cloudstep.deploy.registry import StepRegistry, ordered
from cloudstep.deploy.steps import Step, StepResult, step


def _noop(cfg):
    return None


def test_positions_follow_insertion_order():
    reg = StepRegistry()
    reg.register("first", _noop)
    reg.register("second", _noop, "Second step")
    assert reg.ids() == ["first", "second"]
    assert [s.position for s in reg] == [1, 2]
    assert reg.get("second").label == "Second step"
    assert reg.get("first").label == "first"
    assert "first" in reg and "third" not in reg
    assert len(reg) == 2


def test_duplicate_id_rejected():
    reg = StepRegistry([Step(id="a", body=_noop)])
    with pytest.raises(DuplicateStepError):
        reg.register("a", _noop)


@pytest.mark.parametrize("bad", ["", "Has Space", "UPPER", "-leading"])
def test_invalid_ids_rejected(bad):
    with pytest.raises(InvalidStepError):
        Step(id=bad, body=_noop)


def test_body_must_be_callable():
    with pytest.raises(InvalidStepError):
        Step(id="a", body="not callable")


def test_tagged_bodies_take_id_and_docstring():
    class Stage:
        @step("thing_done")
        def do_thing(self, cfg):
            """Do the thing

            More detail that is not part of the label.
            """
            return StepResult.done()

        @step("other_done", "Explicit description")
        def other(self, cfg):
            """Ignored docstring"""

    stage = Stage()
    reg = StepRegistry()
    reg.add_tagged(stage.do_thing)
    reg.add_tagged(stage.other)
    assert reg.get("thing_done").description == "Do the thing"
    assert reg.get("other_done").description == "Explicit description"


def test_untagged_body_rejected():
    with pytest.raises(ValueError):
        StepRegistry().add_tagged(_noop)


def test_ordered_assigns_positions_to_plain_lists():
    seq = ordered([Step(id="x", body=_noop), Step(id="y", body=_noop)])
    assert [(s.id, s.position) for s in seq] == [("x", 1), ("y", 2)]
    with pytest.raises(DuplicateStepError):
        ordered([Step(id="x", body=_noop), Step(id="x", body=_noop)])
