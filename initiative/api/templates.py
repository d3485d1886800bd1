"""
HTML fragments for the tracker API.

Jinja2 templates for the roster, single rows, the encounter list and search
results. A templates directory may override any built-in by file name;
anything not overridden falls back to the defaults below. Autoescaping is
always on, since names are user input.
"""

import logging
from pathlib import Path
from typing import Any, Callable, Iterable

from jinja2 import BaseLoader, Environment, TemplateNotFound

from ..state.schema import Combatant, Encounter

logger = logging.getLogger(__name__)


# =============================================================================
# Default Templates (Built-in)
# =============================================================================

DEFAULT_TEMPLATES = {
    # -------------------------------------------------------------------------
    # One roster row, view and edit mode
    # -------------------------------------------------------------------------
    "row.html.j2": """\
<div class="character{% if c.is_active %} active{% endif %}" data-id="{{ c.id }}">
  <div class="view-mode"{% if edit_mode %} style="display: none"{% endif %}>
    <span class="name">{{ c.name }}</span>
    <span class="ac">{{ c.armor_class }}</span>
    <span class="hp">{{ c.current_hp }}/{{ c.max_hp }}</span>
    <span class="initiative">{{ c.initiative }}</span>
  </div>
  <div class="edit-mode"{% if not edit_mode %} style="display: none"{% endif %}>
    <input name="name" value="{{ c.name }}">
    <input name="armorClass" type="number" value="{{ c.armor_class }}">
    <input name="maxHP" type="number" value="{{ c.max_hp }}">
    <input name="currentHP" type="number" value="{{ c.current_hp }}">
    <input name="initiative" type="number" value="{{ c.initiative }}">
  </div>
</div>
""",

    # -------------------------------------------------------------------------
    # Whole roster, in the order given
    # -------------------------------------------------------------------------
    "roster.html.j2": """\
<div id="character-list"{% if encounter %} data-encounter-id="{{ encounter.id }}"{% endif %}>
{% for c in rows %}
{% set edit_mode = c.id in editing %}
{% include "row.html.j2" %}
{% endfor %}
</div>
""",

    # -------------------------------------------------------------------------
    # Encounter picker
    # -------------------------------------------------------------------------
    "encounters.html.j2": """\
<ul id="encounter-list">
{% for e in encounters %}
  <li class="encounter{% if e.id == current_id %} selected{% endif %}" data-id="{{ e.id }}">{{ e.name }}</li>
{% endfor %}
</ul>
""",

    # -------------------------------------------------------------------------
    # Search results with Add buttons
    # -------------------------------------------------------------------------
    "search.html.j2": """\
{% for c in matches %}
<div>{{ c.name }} <button onclick="addCharacterToEncounter({{ c.id }})">Add</button></div>
{% endfor %}
""",
}


# =============================================================================
# Loader
# =============================================================================

class FragmentLoader(BaseLoader):
    """Checks templates_dir first, then falls back to the built-in defaults."""

    def __init__(self, templates_dir: Path | None = None):
        self.templates_dir = templates_dir

    def get_source(
        self, environment: Environment, template: str
    ) -> tuple[str, str | None, Callable[[], bool]]:
        if self.templates_dir:
            user_template = self.templates_dir / template
            if user_template.exists():
                mtime = user_template.stat().st_mtime
                source = user_template.read_text(encoding="utf-8")
                return source, str(user_template), lambda: user_template.stat().st_mtime == mtime

        if template in DEFAULT_TEMPLATES:
            return DEFAULT_TEMPLATES[template], None, lambda: True

        raise TemplateNotFound(template)


# =============================================================================
# Renderer
# =============================================================================

class FragmentRenderer:
    """Renders the HTML fragments the browser client swaps into the page."""

    def __init__(self, templates_dir: Path | str | None = None):
        self.templates_dir = Path(templates_dir) if templates_dir else None
        self._env = Environment(
            loader=FragmentLoader(self.templates_dir),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, template_name: str, context: dict[str, Any]) -> str:
        try:
            template = self._env.get_template(template_name)
            return template.render(**context)
        except TemplateNotFound:
            logger.error("Template not found: %s", template_name)
            raise

    def roster(
        self,
        encounter: Encounter | None,
        rows: Iterable[Combatant],
        editing: Iterable[int] = (),
    ) -> str:
        """Roster fragment; rows whose id is in editing open in edit mode."""
        return self.render("roster.html.j2", {
            "encounter": encounter,
            "rows": list(rows),
            "editing": set(editing),
        })

    def row(self, combatant: Combatant, edit_mode: bool = False) -> str:
        return self.render("row.html.j2", {"c": combatant, "edit_mode": edit_mode})

    def encounters(self, encounters: Iterable[Encounter], current_id: int | None) -> str:
        return self.render("encounters.html.j2", {
            "encounters": list(encounters),
            "current_id": current_id,
        })

    def search_results(self, matches: Iterable[Combatant]) -> str:
        return self.render("search.html.j2", {"matches": list(matches)})
