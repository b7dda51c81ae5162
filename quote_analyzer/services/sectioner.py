"""
Heuristic sectioning of quote documents by header keywords.
"""
import re
import logging
from typing import List, NamedTuple, Optional

logger = logging.getLogger(__name__)

MIN_SECTION_LENGTH = 150

# Used when a marker has no later marker and no natural break
FALLBACK_SECTION_LENGTH = 5_000

# Window size when no markers are found
CHUNK_SIZE = 35_000

# Three or more newlines, or a separator line
_NATURAL_BREAK = re.compile(r'\n[ \t]*\n[ \t]*\n|\n[ \t]*(?:-{3,}|_{3,}|={3,})')


class SectionMarker(NamedTuple):
    name: str
    marker: str
    priority: int


class Section(NamedTuple):
    name: str
    text: str


# Lower priority values are analyzed first
SECTION_MARKERS = [
    SectionMarker('Project Description', 'Project Description', 1),
    SectionMarker('Scope of Work', 'Scope of Work', 1),
    SectionMarker('Description of Work', 'Description of Work', 1),
    SectionMarker('Pricing', 'Price Breakdown', 2),
    SectionMarker('Pricing', 'Cost Breakdown', 2),
    SectionMarker('Pricing', 'Pricing', 2),
    SectionMarker('Investment', 'Your Investment', 2),
    SectionMarker('Payment Terms', 'Payment Terms', 3),
    SectionMarker('Payment Terms', 'Payment Schedule', 3),
    SectionMarker('Financing', 'Financing', 3),
    SectionMarker('Warranty', 'Warranty', 4),
    SectionMarker('Warranty', 'Guarantee', 4),
    SectionMarker('Terms and Conditions', 'Terms and Conditions', 5),
    SectionMarker('Cancellation', 'Right to Cancel', 5),
    SectionMarker('HVAC', 'HVAC', 6),
    SectionMarker('Roofing', 'Roofing', 6),
    SectionMarker('Plumbing', 'Plumbing', 6),
    SectionMarker('Electrical', 'Electrical', 6),
    SectionMarker('Solar', 'Solar', 6),
    SectionMarker('Windows', 'Windows', 6),
]


def _find_markers(text: str) -> List[tuple]:
    """Return (position, marker) for every marker present, in document order."""
    lowered = text.lower()
    found = []

    for marker in SECTION_MARKERS:
        position = lowered.find(marker.marker.lower())
        if position != -1:
            found.append((position, marker))

    # Stable sort keeps table order for markers at the same position
    found.sort(key=lambda item: item[0])
    return found


def _natural_break(text: str, start: int) -> int:
    """Find where a trailing section ends when no later marker exists."""
    match = _NATURAL_BREAK.search(text, start)
    if match:
        return match.start()
    return min(len(text), start + FALLBACK_SECTION_LENGTH)


def _next_marker_position(found: List[tuple], position: int) -> Optional[int]:
    for other_position, _ in found:
        if other_position > position:
            return other_position
    return None


def chunk_text(text: str, chunk_size: int = CHUNK_SIZE) -> List[Section]:
    """
    Split text into fixed-size character windows.

    Args:
        text: Full document text.
        chunk_size: Maximum characters per window.

    Returns:
        Sections named "Document Part 1", "Document Part 2", ...
    """
    chunks = []
    for index, start in enumerate(range(0, len(text), chunk_size), 1):
        chunks.append(Section(f'Document Part {index}', text[start:start + chunk_size]))

    logger.info(f"Split text into {len(chunks)} chunks of ~{chunk_size} chars each")
    return chunks


def split_into_sections(text: str) -> List[Section]:
    """
    Split a quote into named sections using the SECTION_MARKERS table.

    Each marker found starts a section that runs to the next marker later in
    the text, or to a natural break when it is the last one. Sections shorter
    than MIN_SECTION_LENGTH are dropped. The result is ordered by marker
    priority, then by position in the document.

    Falls back to chunk_text when no usable section is found.
    """
    found = _find_markers(text)
    candidates = []

    for position, marker in found:
        end = _next_marker_position(found, position)
        if end is None:
            end = _natural_break(text, position + len(marker.marker))

        section_text = text[position:end]
        if len(section_text) < MIN_SECTION_LENGTH:
            logger.debug(f"Skipping short section '{marker.name}' ({len(section_text)} chars)")
            continue

        candidates.append((marker.priority, Section(marker.name, section_text)))

    if not candidates:
        logger.info("No section markers found - falling back to fixed-size chunks")
        return chunk_text(text)

    candidates.sort(key=lambda item: item[0])
    sections = [section for _, section in candidates]

    logger.info(f"Found {len(sections)} sections: {[s.name for s in sections]}")
    return sections
