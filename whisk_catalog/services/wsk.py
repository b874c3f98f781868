"""
Platform CLI wrapper.

Runs the ``wsk`` command line client as a subprocess and interprets its
output. Every call passes the configured auth key; the key and any
password parameters are masked before commands are logged.
"""

from __future__ import annotations

import json
import re
import subprocess
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping

from whisk_catalog.core.config import Settings, get_settings
from whisk_catalog.core.exceptions import CliError, ConfigurationError, InvocationError
from whisk_catalog.core.logging import get_logger
from whisk_catalog.core.properties import load_properties


logger = get_logger("services.wsk")

SUCCESS_EXIT = 0
ERROR_EXIT = 1
DONTCARE_EXIT = None

_ACTIVATION_ID = re.compile(r"with id ([0-9a-fA-F]+)")
_ACTIVATION_LIST_ID = re.compile(r"\b([0-9a-f]{32})\b")
_SECRET_PARAM = re.compile(r"password|auth|apikey|secret|token", re.IGNORECASE)
_SECRET_JSON_FIELD = re.compile(
    r'("(?:password|auth|apikey|api_key|secret|token)"\s*:\s*)"(?:[^"\\]|\\.)*"',
    re.IGNORECASE,
)


class Item(str, Enum):
    """Platform entity kinds, named as the CLI names them."""

    ACTION = "action"
    PACKAGE = "package"
    TRIGGER = "trigger"
    RULE = "rule"
    ACTIVATION = "activation"


@dataclass
class RunResult:
    """Outcome of one CLI run."""

    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == SUCCESS_EXIT


def _param_args(params: Mapping[str, Any] | None) -> list[str]:
    args: list[str] = []
    for key, value in (params or {}).items():
        args.extend(["-p", key, str(value)])
    return args


def mask_command(cmd: Iterable[str]) -> str:
    """Render a command for logging with secrets replaced."""
    tokens = list(cmd)
    masked: list[str] = []
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token in ("--auth", "-u") and i + 1 < len(tokens):
            masked.extend([token, "[REDACTED]"])
            i += 2
        elif token == "-p" and i + 2 < len(tokens) and _SECRET_PARAM.search(tokens[i + 1]):
            # -p <key> <value>: keep the key, hide the value
            masked.extend([token, tokens[i + 1], "[REDACTED]"])
            i += 3
        elif token == "-p" and i + 2 < len(tokens):
            # JSON values such as serialized credentials
            value = _SECRET_JSON_FIELD.sub(r'\1"[REDACTED]"', tokens[i + 2])
            masked.extend([token, tokens[i + 1], value])
            i += 3
        else:
            masked.append(token)
            i += 1
    return " ".join(masked)


class WskCli:
    """
    Drive the platform through its command line client.

    Usage:
        wsk = WskCli(settings)
        wsk.sanitize(Item.ACTION, "hello")
        wsk.create_action("hello", "/path/hello.js")
        activation_id, result = wsk.invoke_blocking("hello", {"name": "x"})
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._auth_key: str | None = self.settings.wsk_auth
        self._apihost: str | None = self.settings.wsk_apihost
        self._wskprops_loaded = False

    # -- configuration ------------------------------------------------------

    def _load_wskprops(self) -> None:
        if self._wskprops_loaded:
            return
        self._wskprops_loaded = True
        path = self.settings.wskprops_path.expanduser()
        if not path.exists():
            return
        props = load_properties(path)
        self._auth_key = self._auth_key or props.get("AUTH") or None
        self._apihost = self._apihost or props.get("APIHOST") or None

    @property
    def auth_key(self) -> str:
        self._load_wskprops()
        if not self._auth_key:
            raise ConfigurationError(
                message="No auth key: set WSK_AUTH or AUTH in .wskprops",
                details={"wskprops": str(self.settings.wskprops_path)},
            )
        return self._auth_key

    @property
    def apihost(self) -> str | None:
        self._load_wskprops()
        return self._apihost

    def _base_command(self) -> list[str]:
        cmd = [self.settings.wsk_cli]
        if self.apihost:
            cmd.extend(["--apihost", self.apihost])
        if self.settings.wsk_insecure:
            cmd.append("-i")
        cmd.extend(["--auth", self.auth_key])
        return cmd

    # -- raw CLI ------------------------------------------------------------

    def cli(self, *args: str, expected_exit: int | None = SUCCESS_EXIT) -> RunResult:
        """
        Run ``wsk <args>``.

        Raises CliError if ``expected_exit`` is not None and the exit code
        differs, or if the binary is missing or times out.
        """
        cmd = self._base_command() + [str(a) for a in args]
        shown = mask_command(cmd)
        logger.debug("Running %s", shown)

        try:
            completed = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.settings.wsk_command_timeout,
            )
        except FileNotFoundError as exc:
            raise CliError(
                message=f"CLI executable not found: {self.settings.wsk_cli}",
                details={"command": shown},
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise CliError(
                message=f"CLI timed out after {self.settings.wsk_command_timeout}s",
                details={"command": shown},
            ) from exc

        result = RunResult(
            exit_code=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )

        if expected_exit is not None and result.exit_code != expected_exit:
            raise CliError(
                message=(
                    f"Expected exit code {expected_exit} but got {result.exit_code}: "
                    f"{shown}"
                ),
                details={
                    "command": shown,
                    "exit_code": result.exit_code,
                    "stdout": result.stdout[-2000:],
                    "stderr": result.stderr[-2000:],
                },
            )

        return result

    # -- entities -----------------------------------------------------------

    def delete(
        self, item: Item, name: str, expected_exit: int | None = SUCCESS_EXIT
    ) -> RunResult:
        return self.cli(item.value, "delete", name, expected_exit=expected_exit)

    def sanitize(self, item: Item, name: str) -> RunResult | None:
        """Delete ``name`` if it exists. Never raises."""
        try:
            result = self.delete(item, name, expected_exit=DONTCARE_EXIT)
        except CliError as exc:
            logger.warning("Sanitize %s %s failed: %s", item.value, name, exc.message)
            return None
        if result.ok:
            logger.info("Sanitized %s %s", item.value, name)
        return result

    def create_action(
        self,
        name: str,
        file: str,
        params: Mapping[str, Any] | None = None,
        expected_exit: int | None = SUCCESS_EXIT,
    ) -> RunResult:
        result = self.cli(
            "action", "create", name, file, *_param_args(params),
            expected_exit=expected_exit,
        )
        logger.info("Created action %s with %s", name, file)
        return result

    def create_package(
        self,
        name: str,
        params: Mapping[str, Any] | None = None,
        expected_exit: int | None = SUCCESS_EXIT,
    ) -> RunResult:
        return self.cli(
            "package", "create", name, *_param_args(params),
            expected_exit=expected_exit,
        )

    def bind_package(
        self,
        expected_exit: int | None,
        source: str,
        name: str,
        params: Mapping[str, Any] | None = None,
    ) -> RunResult:
        return self.cli(
            "package", "bind", source, name, *_param_args(params),
            expected_exit=expected_exit,
        )

    def create_trigger(
        self,
        name: str,
        feed: str | None = None,
        params: Mapping[str, Any] | None = None,
        expected_exit: int | None = SUCCESS_EXIT,
    ) -> RunResult:
        args = ["trigger", "create", name]
        if feed:
            args.extend(["--feed", feed])
        args.extend(_param_args(params))
        return self.cli(*args, expected_exit=expected_exit)

    def create_rule(
        self,
        name: str,
        trigger: str,
        action: str,
        expected_exit: int | None = SUCCESS_EXIT,
    ) -> RunResult:
        return self.cli("rule", "create", name, trigger, action, expected_exit=expected_exit)

    def namespaces(self) -> RunResult:
        return self.cli("namespace", "list", expected_exit=DONTCARE_EXIT)

    # -- invocation ---------------------------------------------------------

    def invoke_blocking(
        self, name: str, params: Mapping[str, Any] | None = None
    ) -> tuple[str, str]:
        """
        Invoke ``name`` and wait for it to finish.

        Returns ``(activation_id, result_json)`` where ``result_json`` is
        shaped ``{"result": {...}}``.
        """
        result = self.cli("action", "invoke", "--blocking", name, *_param_args(params))
        return parse_blocking_output(result.stdout)

    # -- logs ---------------------------------------------------------------

    def get_logs_for_activation(self, activation_id: str) -> RunResult:
        return self.cli("activation", "logs", activation_id, expected_exit=DONTCARE_EXIT)

    def logs_for_activation_contain_get(
        self, activation_id: str, substring: str, timeout: float
    ) -> str | None:
        """Poll the activation's logs for a line containing ``substring``."""
        deadline = time.monotonic() + timeout
        while True:
            logs = self.get_logs_for_activation(activation_id)
            if logs.ok:
                for line in logs.stdout.splitlines():
                    if substring in line:
                        return line
            if time.monotonic() >= deadline:
                return None
            time.sleep(self.settings.log_poll_interval)

    def list_activation_ids(self, action: str, since: int = 0, limit: int = 30) -> list[str]:
        """Activation ids for ``action``, newest first. ``since`` is epoch ms."""
        args = ["activation", "list", action, "--limit", str(limit)]
        if since > 0:
            args.extend(["--since", str(since)])
        result = self.cli(*args, expected_exit=DONTCARE_EXIT)
        if not result.ok:
            return []
        seen: list[str] = []
        for match in _ACTIVATION_LIST_ID.finditer(result.stdout):
            if match.group(1) not in seen:
                seen.append(match.group(1))
        return seen

    def get_logs_for_action(self, action: str, since: int = 0) -> list[str]:
        """All log lines of every activation of ``action`` since ``since``."""
        lines: list[str] = []
        for activation_id in self.list_activation_ids(action, since):
            logs = self.get_logs_for_activation(activation_id)
            if logs.ok:
                lines.extend(line for line in logs.stdout.splitlines() if line.strip())
        return lines

    def first_logs_for_action_contain_get(
        self, action: str, substring: str, since: int, timeout: float
    ) -> str | None:
        """Poll every activation of ``action`` for a line with ``substring``."""
        deadline = time.monotonic() + timeout
        while True:
            for line in self.get_logs_for_action(action, since):
                if substring in line:
                    return line
            if time.monotonic() >= deadline:
                return None
            time.sleep(self.settings.log_poll_interval)


def parse_blocking_output(stdout: str) -> tuple[str, str]:
    """
    Split ``ok: invoked <name> with id <id>`` plus JSON into its parts.

    Accepts both a bare ``{"result": ...}`` body and a full activation
    record (``{"response": {"result": ...}}``).
    """
    match = _ACTIVATION_ID.search(stdout)
    if not match:
        raise InvocationError(
            message="No activation id in blocking invoke output",
            details={"stdout": stdout[-2000:]},
        )
    activation_id = match.group(1)

    start = stdout.find("{", match.end())
    if start < 0:
        raise InvocationError(
            message=f"No result in blocking invoke output for {activation_id}",
            details={"stdout": stdout[-2000:]},
        )
    try:
        record = json.loads(stdout[start:])
    except ValueError as exc:
        raise InvocationError(
            message=f"Unparseable result for activation {activation_id}",
            details={"stdout": stdout[-2000:]},
        ) from exc

    if isinstance(record, dict) and "result" not in record:
        response = record.get("response")
        if isinstance(response, dict) and "result" in response:
            record = {"result": response["result"]}

    return activation_id, json.dumps(record)
