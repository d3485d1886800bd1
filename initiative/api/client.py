"""
Python client for the tracker API.

Behaves like the browser client: selecting swaps in the returned roster,
saving keeps the edit open on any failure, and reorders are sent and
forgotten. Open edits are tracked on the client instance.
"""

import json
import logging
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Callable, Mapping

from ..errors import SaveError, TrackerError, ValidationError
from ..state.editing import parse_number
from ..state.schema import Combatant

logger = logging.getLogger(__name__)

# (method, path, json body) -> (status code, response text)
Transport = Callable[[str, str, dict | None], tuple[int, str]]


class UrllibTransport:
    """Blocking HTTP transport over urllib."""

    def __init__(self, base_url: str = "http://127.0.0.1:8000", timeout: int = 10):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def __call__(self, method: str, path: str, body: dict | None = None) -> tuple[int, str]:
        data = json.dumps(body).encode("utf-8") if body is not None else None
        req = urllib.request.Request(
            f"{self.base_url}{path}",
            data=data,
            headers={"Content-Type": "application/json"},
            method=method,
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                return resp.status, resp.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            return e.code, e.read().decode("utf-8", errors="replace")


@dataclass
class PendingEdit:
    """A row open in edit mode, with its unsaved input values."""
    combatant_id: int
    name: str = ""
    armor_class: int = 0
    max_hp: int = 0
    current_hp: int = 0
    initiative: int = 0
    owner_id: str = ""
    is_open: bool = True
    error: str | None = None

    @classmethod
    def from_combatant(cls, combatant: Combatant) -> "PendingEdit":
        return cls(
            combatant_id=combatant.id,
            name=combatant.name,
            armor_class=combatant.armor_class,
            max_hp=combatant.max_hp,
            current_hp=combatant.current_hp,
            initiative=combatant.initiative,
            owner_id=combatant.owner_id,
        )

    @classmethod
    def from_inputs(cls, combatant_id: int, inputs: Mapping[str, str]) -> "PendingEdit":
        """Build from raw form input text; unparseable numbers become 0."""
        return cls(
            combatant_id=combatant_id,
            name=inputs.get("name", ""),
            armor_class=parse_number(inputs.get("armorClass", "")),
            max_hp=parse_number(inputs.get("maxHP", "")),
            current_hp=parse_number(inputs.get("currentHP", "")),
            initiative=parse_number(inputs.get("initiative", "")),
        )

    def to_payload(self) -> dict:
        """Wire body for POST /save-character."""
        return {
            "id": self.combatant_id,
            "name": self.name,
            "armorClass": self.armor_class,
            "maxHP": self.max_hp,
            "currentHP": self.current_hp,
            "initiative": self.initiative,
            "ownerId": self.owner_id,
        }


@dataclass
class LegacyClient:
    """
    Client-side view of one tracker page.

    roster_html holds the last roster fragment the server sent.
    """
    transport: Transport = field(default_factory=UrllibTransport)
    roster_html: str = ""
    edits: dict[int, PendingEdit] = field(default_factory=dict)

    @property
    def is_editing(self) -> bool:
        return any(edit.is_open for edit in self.edits.values())

    def _send(self, method: str, path: str, body: dict | None = None) -> tuple[int, str]:
        logger.debug("%s %s %s", method, path, body)
        return self.transport(method, path, body)

    # -------------------------------------------------------------------------
    # Roster
    # -------------------------------------------------------------------------

    def select(self, combatant_id: int) -> str:
        """Ask the server to make a combatant active; swaps in the new roster."""
        status, text = self._send("POST", "/select-character", {"id": combatant_id})
        if not 200 <= status < 300:
            raise TrackerError(f"Select failed ({status}): {text}")
        self.roster_html = text
        return text

    def reorder(self, old_index: int, new_index: int) -> bool:
        """
        Report a drag move. Failures are logged and otherwise ignored; the
        local order is never rolled back.
        """
        try:
            status, text = self._send(
                "POST", "/reorder", {"oldIndex": old_index, "newIndex": new_index}
            )
        except OSError as e:
            logger.error("Reorder %s -> %s failed: %s", old_index, new_index, e)
            return False
        if not 200 <= status < 300:
            logger.error("Reorder %s -> %s failed (%s): %s", old_index, new_index, status, text)
            return False
        return True

    # -------------------------------------------------------------------------
    # Editing
    # -------------------------------------------------------------------------

    def begin_edit(self, edit: PendingEdit) -> PendingEdit:
        """Open a row in edit mode."""
        edit.is_open = True
        edit.error = None
        self.edits[edit.combatant_id] = edit
        return edit

    def cancel(self, edit: PendingEdit) -> None:
        edit.is_open = False
        self.edits.pop(edit.combatant_id, None)

    def save(self, edit: PendingEdit) -> str:
        """
        Save an edited row and return the server's row fragment.

        An empty name raises ValidationError without contacting the server.
        Any transport failure or non-2xx answer raises SaveError; in both
        cases the edit stays open with its values intact.
        """
        if not edit.name.strip():
            edit.error = "Name is required"
            raise ValidationError(edit.error)

        try:
            status, text = self._send("POST", "/save-character", edit.to_payload())
        except OSError as e:
            edit.error = f"Failed to save character: {e}"
            logger.error(edit.error)
            raise SaveError(edit.error) from e

        if not 200 <= status < 300:
            edit.error = f"Failed to save character: {text}"
            logger.error("Save of %s failed (%s)", edit.combatant_id, status)
            raise SaveError(edit.error, status=status)

        edit.is_open = False
        edit.error = None
        self.edits.pop(edit.combatant_id, None)
        return text
