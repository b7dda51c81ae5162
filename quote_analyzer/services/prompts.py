"""
Prompt templates for home-services quote analysis.
"""
from typing import Iterable, Optional

GROUNDING_RULE = (
    "IMPORTANT: Only use information that is actually present in the provided text. "
    "Do not invent details that are not explicitly stated."
)

SINGLE_PASS_SYSTEM_PROMPT = (
    "You are a home services quote analysis expert and consumer protection advocate. "
    "Analyze the provided quote and return a detailed JSON response with insights about cost, "
    "quality, timeline, and potential issues. " + GROUNDING_RULE
)

SECTION_SYSTEM_PROMPT = (
    "You are a consumer protection expert reviewing one section of a home services quote. "
    "Be thorough but fair: protect consumers from genuinely problematic practices without "
    "attacking legitimate businesses. " + GROUNDING_RULE
)

SYNTHESIS_SYSTEM_PROMPT = (
    "You are a consumer champion writing the final report on a home services quote for the "
    "homeowner. Write in clear, plain language with headed sections. " + GROUNDING_RULE
)

SECTION_PROMPT_TEMPLATE = '''Analyze the "{section_name}" section of a home services quote.
{location_context}
Cover, where the section allows:
1. Service type and whether the proposed scope fits the job
2. Costs: labor, materials, permits, markup, unclear or unusually high charges, hidden fees
3. Red flags: high-pressure language, vague warranty terms, bundled items without itemization,
   unusual financing or payment structures, proprietary technology claims
4. Missing information a fair quote would include
5. Questions the homeowner should ask the contractor

Keep the analysis concise and specific to this section.

SECTION TEXT:
{section_text}'''

SYNTHESIS_PROMPT_TEMPLATE = '''Below are analyses of the individual sections of one home services quote.
{location_context}
Combine them into one comprehensive consumer protection report with these headings:
- Summary
- Pricing & Value
- Red Flags
- Contract Terms & Warranty
- Questions to Ask
- Recommendation (including whether to get additional quotes)

Some section analyses may report an analysis error; work with the sections that are available
and mention any gaps briefly.

SECTION ANALYSES:
{section_analyses}'''


def _location_context(location: Optional[str]) -> str:
    if not location:
        return ''
    return (
        f"\nThe homeowner is located in: {location}. Consider typical regional pricing, "
        "licensing and permit requirements for this area.\n"
    )


def build_single_pass_prompt(text: str, location: Optional[str] = None) -> str:
    """User message for the single-pass JSON analysis."""
    context = _location_context(location)
    if not context:
        return text
    return f"{context.strip()}\n\nQUOTE TEXT:\n{text}"


def build_section_prompt(section_name: str, section_text: str, location: Optional[str] = None) -> str:
    return SECTION_PROMPT_TEMPLATE.format(
        section_name=section_name,
        section_text=section_text,
        location_context=_location_context(location),
    )


def build_synthesis_prompt(section_results: Iterable[dict], location: Optional[str] = None) -> str:
    """
    Build the synthesis prompt from per-section results.

    Args:
        section_results: Dicts with 'section' and 'analysis' keys, in order.
        location: Optional homeowner location hint.
    """
    blocks = [
        f"### {index}. {result['section']}\n{result['analysis']}"
        for index, result in enumerate(section_results, 1)
    ]
    return SYNTHESIS_PROMPT_TEMPLATE.format(
        section_analyses='\n\n'.join(blocks),
        location_context=_location_context(location),
    )
