"""Checklist models and fixed clinical templates."""

from dataclasses import dataclass
from enum import StrEnum

HYPOTHERMIA_ID = "hypothermia"


class HypothermiaStatus(StrEnum):
    """Temperature classification recorded against the hypothermia cause."""

    NONE = "NONE"
    SEVERE = "SEVERE"
    MODERATE = "MODERATE"
    NORMOTHERMIC = "NORMOTHERMIC"


@dataclass(frozen=True)
class ChecklistItem:
    """A single checklist entry."""

    id: str
    name: str
    is_completed: bool = False
    hypothermia_status: HypothermiaStatus = HypothermiaStatus.NONE


def _template(*entries: tuple[str, str]) -> tuple[ChecklistItem, ...]:
    return tuple(ChecklistItem(id=item_id, name=name) for item_id, name in entries)


REVERSIBLE_CAUSES_TEMPLATE = _template(
    ("hypoxia", "Hypoxia"),
    ("hypovolemia", "Hypovolemia"),
    ("hypo-hyperkalaemia", "Hypo/Hyperkalaemia"),
    (HYPOTHERMIA_ID, "Hypothermia"),
    ("toxins", "Toxins"),
    ("tamponade", "Tamponade"),
    ("tension-pneumothorax", "Tension Pneumothorax"),
    ("thrombosis", "Thrombosis"),
)

POST_ROSC_TASKS_TEMPLATE = _template(
    ("ventilation", "Optimise Ventilation & Oxygenation"),
    ("ecg", "12-Lead ECG"),
    ("hypotension", "Treat Hypotension (SBP < 90)"),
    ("glucose", "Check Blood Glucose"),
    ("temp", "Consider Temperature Control"),
    ("causes", "Identify & Treat Causes"),
)

POST_MORTEM_TASKS_TEMPLATE = _template(
    ("reposition", "Reposition body & remove lines/tubes"),
    ("documentation", "Complete documentation"),
    ("expected", "Determine expected/unexpected death"),
    ("coroner", "Contact Coroner (if unexpected)"),
    ("procedure", "Follow local body handling procedure"),
    ("leaflet", "Provide leaflet to bereaved relatives"),
    ("donation", "Consider organ/tissue donation"),
)

SHOCKABLE_RHYTHMS = ("VF", "VT")
NON_SHOCKABLE_RHYTHMS = ("PEA", "Asystole")

OTHER_DRUGS = tuple(
    sorted(
        [
            "Adenosine",
            "Adrenaline 1:1000",
            "Adrenaline 1:10,000",
            "Amiodarone (Further Dose)",
            "Atropine",
            "Calcium chloride",
            "Glucose",
            "Hartmann's solution",
            "Magnesium sulphate",
            "Midazolam",
            "Naloxone",
            "Potassium chloride",
            "Sodium bicarbonate",
            "Sodium chloride",
            "Tranexamic acid",
        ]
    )
)
