# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/host/database.py

from __future__ import annotations

import logging
import re
from typing import Callable, Iterable, Optional, Sequence

import pymysql
from pymysql.converters import escape_string

from ..execution.runner import CommandRunner
from ..utils.retry import retry

log = logging.getLogger("cloudstep")

_IDENT = re.compile(r"^[A-Za-z0-9_]+$")


def _ident(name: str) -> str:
    if not _IDENT.match(name):
        raise ValueError(f"unsafe SQL identifier {name!r}")
    return name


class DatabaseNotReady(RuntimeError):
    pass


class MariaDB:
    """
    Local MariaDB administration.

    Everything but the very first root password change goes through PyMySQL
    as root with the generated password. A fresh Ubuntu install only lets
    root in over the unix socket, so that one change uses the mysql client.
    """

    def __init__(
        self,
        runner: CommandRunner,
        root_password: str,
        *,
        unix_socket: str = "/run/mysqld/mysqld.sock",
        dry_run: bool = False,
        connect: Callable[..., "pymysql.connections.Connection"] = pymysql.connect,
    ):
        self.runner = runner
        self.root_password = root_password
        self.unix_socket = unix_socket
        self.dry_run = dry_run
        self._connect = connect

    # ------------------------- connection -------------------------

    def _open(self):
        return self._connect(
            user="root",
            password=self.root_password,
            unix_socket=self.unix_socket,
            autocommit=True,
            connect_timeout=10,
        )

    def can_authenticate(self) -> bool:
        try:
            conn = self._open()
        except pymysql.err.OperationalError:
            return False
        conn.close()
        return True

    @retry(retries=30, delay=2, retry_on=(DatabaseNotReady,))
    def wait_until_ready(self) -> None:
        if self.dry_run:
            return
        if not self.runner.succeeds(["mysqladmin", "--protocol=socket", "ping"]) and not self.can_authenticate():
            raise DatabaseNotReady("MariaDB is not accepting connections yet")

    def execute(self, statements: Iterable[str] | str, params: Optional[Sequence] = None) -> None:
        if isinstance(statements, str):
            statements = [statements]
        statements = list(statements)
        if self.dry_run:
            for sql in statements:
                log.info("[mariadb] dry-run: %s", sql)
            return
        conn = self._open()
        try:
            with conn.cursor() as cur:
                for sql in statements:
                    log.debug("[mariadb] %s", sql)
                    cur.execute(sql, params)
        finally:
            conn.close()

    def query(self, sql: str, params: Optional[Sequence] = None) -> list:
        conn = self._open()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                return list(cur.fetchall())
        finally:
            conn.close()

    # ------------------------- administration -------------------------

    def ensure_root_password(self) -> bool:
        """Set the root password unless authenticating with it already works."""
        if self.can_authenticate():
            return False
        pw = escape_string(self.root_password)
        self.runner.run(
            ["mysql", "--protocol=socket", "-u", "root", "-e",
             f"ALTER USER 'root'@'localhost' IDENTIFIED BY '{pw}';"]
        )
        return True

    def secure(self) -> None:
        """Equivalent of mysql_secure_installation; every statement is a no-op on rerun."""
        self.execute([
            "DELETE FROM mysql.global_priv WHERE User='root' AND Host NOT IN ('localhost', '127.0.0.1', '::1')",
            "DELETE FROM mysql.global_priv WHERE User=''",
            "DROP DATABASE IF EXISTS test",
            "DELETE FROM mysql.db WHERE Db='test' OR Db='test\\\\_%'",
            "FLUSH PRIVILEGES",
        ])

    def database_exists(self, name: str) -> bool:
        rows = self.query(
            "SELECT SCHEMA_NAME FROM information_schema.SCHEMATA WHERE SCHEMA_NAME=%s", (name,)
        )
        return bool(rows)

    def ensure_database(self, name: str) -> None:
        self.execute(f"CREATE DATABASE IF NOT EXISTS `{_ident(name)}`")

    def ensure_grant(self, database: str, user: str, password: str) -> None:
        """
        User exists for localhost and any host, has the given password and
        all privileges on the database.
        """
        db = _ident(database)
        u = _ident(user)
        pw = escape_string(password)
        stmts = []
        for host in ("localhost", "%"):
            stmts += [
                f"CREATE USER IF NOT EXISTS '{u}'@'{host}' IDENTIFIED BY '{pw}'",
                f"ALTER USER '{u}'@'{host}' IDENTIFIED BY '{pw}'",
                f"GRANT ALL PRIVILEGES ON `{db}`.* TO '{u}'@'{host}'",
            ]
        stmts.append("FLUSH PRIVILEGES")
        self.execute(stmts)

    def ensure_service_database(self, user: str, password: str, databases: Sequence[str]) -> None:
        for db in databases:
            self.ensure_database(db)
            self.ensure_grant(db, user, password)
