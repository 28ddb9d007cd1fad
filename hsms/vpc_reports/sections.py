# ============================================================================
# HSMS - Shared Report Section Logic
# ============================================================================
# Section content that every renderer shows the same way: role narratives,
# action steps, attachment icons, watermark colours and people's display
# names.  Renderers only decide markup.
# ============================================================================

from collections import namedtuple
from typing import List, Optional

from .models import Employee, VPCAttachment

NOT_AVAILABLE = "N/A"

# Order in which every renderer emits the single-report sections
SECTION_ORDER = (
    "identification",
    "classification",
    "narrative",
    "attachments",
    "personnel",
    "statistics",
    "role_narrative",
    "escalation",
)


# ---------------------------------------------------------------------------
# Role narratives
# ---------------------------------------------------------------------------

RoleNarrative = namedtuple("RoleNarrative", ["title", "body", "css_class"])

ROLE_NARRATIVES = {
    "safety_officer": RoleNarrative(
        title="Emergency Protocols (Safety Officer View)",
        body=(
            "Emergency protocols for this incident category apply. Confirm the "
            "contact persons for the area, review evacuation procedures where "
            "relevant, and make sure first aid guidance for the identified "
            "hazards is posted and understood by the team."
        ),
        css_class="role-safety-officer",
    ),
    "manager": RoleNarrative(
        title="Department Performance (Manager View)",
        body=(
            "Compare this department's safety ratio with the company ranking "
            "and recent periods. Use the category breakdown to choose topics "
            "for team discussions and agree follow-up actions with supervisors."
        ),
        css_class="role-manager",
    ),
    "admin": RoleNarrative(
        title="System & Audit (Admin View)",
        body=(
            "This entry is available for raw data export and audit review. "
            "Check the record history and attachment storage locations when "
            "verifying data integrity for this VPC."
        ),
        css_class="role-admin",
    ),
}


def role_narrative(role: str) -> Optional[RoleNarrative]:
    """Narrative block for a role; employees get none."""
    return ROLE_NARRATIVES.get(role)


# ---------------------------------------------------------------------------
# Narrative helpers
# ---------------------------------------------------------------------------

def action_steps(action_taken: Optional[str]) -> List[str]:
    """Split action-taken text into numbered steps, dropping blank lines."""
    if not action_taken:
        return []
    return [line.strip() for line in action_taken.splitlines() if line.strip()]


def truncate(text: Optional[str], max_len: int = 200) -> str:
    text = text or ""
    if len(text) <= max_len:
        return text
    max_len = max(max_len, 3)
    return text[: max_len - 3] + "..."


# ---------------------------------------------------------------------------
# Attachments
# ---------------------------------------------------------------------------

AttachmentIcon = namedtuple("AttachmentIcon", ["glyph", "label"])

_ICONS = (
    ("image", AttachmentIcon("\U0001F5BC\uFE0F", "IMG")),
    ("pdf", AttachmentIcon("\U0001F4D5", "PDF")),
    ("video", AttachmentIcon("\U0001F3AC", "VID")),
    ("audio", AttachmentIcon("\U0001F50A", "AUD")),
)
_DEFAULT_ICON = AttachmentIcon("\U0001F4C4", "DOC")

# Images under this size get an inline preview placeholder
IMAGE_PREVIEW_MAX_BYTES = 5 * 1024 * 1024


def attachment_icon(file_type: Optional[str]) -> AttachmentIcon:
    ft = (file_type or "").lower()
    for needle, icon in _ICONS:
        if needle in ft:
            return icon
    return _DEFAULT_ICON


def file_size_mb(size_bytes: Optional[int]) -> str:
    return f"{(size_bytes or 0) / 1024 / 1024:.2f} MB"


def shows_image_preview(attachment: VPCAttachment) -> bool:
    return attachment.is_image and (attachment.file_size or 0) < IMAGE_PREVIEW_MAX_BYTES


# ---------------------------------------------------------------------------
# Watermark
# ---------------------------------------------------------------------------

Watermark = namedtuple("Watermark", ["text", "color", "rgba", "css_class"])

WATERMARKS = {
    "unsafe": Watermark("UNSAFE", "#d32f2f", "rgba(211, 47, 47, 0.10)", "watermark-unsafe"),
    "safe": Watermark("SAFE", "#388e3c", "rgba(56, 142, 60, 0.10)", "watermark-safe"),
}


def watermark_for(vpc_type: str) -> Watermark:
    """Watermark keyed purely off the classification."""
    try:
        return WATERMARKS[vpc_type]
    except KeyError:
        raise ValueError(f"Unknown VPC classification {vpc_type!r}")


# ---------------------------------------------------------------------------
# People
# ---------------------------------------------------------------------------

def person_with_position(emp: Optional[Employee]) -> str:
    """Reporter / manager display: First Last (Position)."""
    if emp is None:
        return NOT_AVAILABLE
    return f"{emp.full_name} ({emp.position})"


def person_with_role(emp: Optional[Employee]) -> str:
    """Creator display: First Last (Role)."""
    if emp is None:
        return NOT_AVAILABLE
    return f"{emp.full_name} ({emp.role})"


def uploader_name(attachment: VPCAttachment) -> str:
    """Uploader display: First Last (EmployeeNumber), or the raw id."""
    if attachment.uploader is not None:
        up = attachment.uploader
        return f"{up.full_name} ({up.employee_number})"
    if attachment.uploaded_by:
        return f"ID: {attachment.uploaded_by}"
    return NOT_AVAILABLE


def escalation_levels(reporter: Optional[Employee], chain: List[Employee]):
    """(label, name) rows: the initial reporter, then each manager level."""
    rows = [("Initial Reporter", person_with_position(reporter))]
    for level, manager in enumerate(chain, 1):
        rows.append((f"Level {level} Manager", person_with_position(manager)))
    return rows
