# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/config/secrets.py

from __future__ import annotations

import secrets
import string

from .models import ServiceSecrets

# Passwords end up inside database URLs and transport URLs, so stay
# within characters that never need quoting there.
_ALPHABET = string.ascii_letters + string.digits


def _gen_password(length: int = 24) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def generate_secrets(length: int = 24) -> ServiceSecrets:
    return ServiceSecrets(
        admin_password=_gen_password(length),
        demo_password=_gen_password(length),
        db_password=_gen_password(length),
        rabbit_password=_gen_password(length),
        service_password=_gen_password(length),
        metadata_secret=secrets.token_hex(10),
    )
