"""
Analysis orchestrator - coordinates single-pass and sectioned quote analysis.
"""
import json
import logging
import time
from typing import Callable, Dict, Iterable, List, Optional

from quote_analyzer.services.prompts import (
    SINGLE_PASS_SYSTEM_PROMPT,
    SECTION_SYSTEM_PROMPT,
    SYNTHESIS_SYSTEM_PROMPT,
    build_single_pass_prompt,
    build_section_prompt,
    build_synthesis_prompt,
)
from quote_analyzer.services.sectioner import split_into_sections

logger = logging.getLogger(__name__)

SECTION_CALL_DELAY_SECONDS = 1.0
SECTION_MAX_OUTPUT_TOKENS = 1500
SYNTHESIS_MAX_OUTPUT_TOKENS = 4000


def _section_error_placeholder(section_name: str, error: Exception) -> str:
    return (
        f"Analysis error: the '{section_name}' section could not be analyzed "
        f"({type(error).__name__}). No findings are available for this section."
    )


def parse_analysis(response_text: str) -> Optional[Dict]:
    """
    Parse a structured model response.

    Returns:
        The parsed JSON object, or None when the response is not a JSON object.
    """
    try:
        analysis = json.loads(response_text)
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse JSON response: {e}")
        return None

    if not isinstance(analysis, dict):
        logger.warning(f"JSON response is a {type(analysis).__name__}, expected an object")
        return None

    return analysis


def analyze_single_pass(
    text: str,
    client,
    file_info: Dict,
    location: Optional[str] = None,
    warnings: Iterable[str] = (),
) -> Dict:
    """
    Analyze the whole quote with one structured (JSON) model call.

    Args:
        text: Extracted, truncated quote text.
        client: Object with a QuoteLLMClient-compatible complete() method.
        file_info: Name, size and type of the upload, echoed in the fallback.
        location: Optional homeowner location hint.
        warnings: Content warnings to attach as processing_warnings.

    Returns:
        Parsed analysis dict, or a fallback dict with error, raw_response
        and file_info when the model output is not a JSON object.
    """
    logger.info(f"Starting single-pass analysis: {len(text)} chars")

    response_text = client.complete(
        SINGLE_PASS_SYSTEM_PROMPT,
        build_single_pass_prompt(text, location),
        json_mode=True,
    )

    analysis = parse_analysis(response_text)

    if analysis is None:
        return {
            'error': 'Could not parse analysis',
            'raw_response': response_text,
            'file_info': file_info,
        }

    warnings = list(warnings)
    if warnings:
        analysis['processing_warnings'] = warnings

    return analysis


def analyze_sections(
    text: str,
    client,
    location: Optional[str] = None,
    delay_seconds: float = SECTION_CALL_DELAY_SECONDS,
    sleep: Optional[Callable[[float], None]] = None,
    section_max_tokens: int = SECTION_MAX_OUTPUT_TOKENS,
    synthesis_max_tokens: int = SYNTHESIS_MAX_OUTPUT_TOKENS,
) -> Dict:
    """
    Analyze each section of the quote, then synthesize a single report.

    Section calls run one at a time with a fixed pause between them. A failed
    section call is replaced with a placeholder so synthesis still sees every
    section; synthesis failures propagate.

    Args:
        text: Extracted, truncated quote text.
        client: Object with a QuoteLLMClient-compatible complete() method.
        location: Optional homeowner location hint.
        delay_seconds: Pause between consecutive section calls.
        sleep: Sleep function; defaults to time.sleep.
        section_max_tokens: Output ceiling per section call.
        synthesis_max_tokens: Output ceiling for the synthesis call.

    Returns:
        Dictionary with:
        - comprehensive_report (str): The synthesized report
        - section_analyses (list): {section, analysis, status} per section
        - sections_analyzed (int): Number of sections
        - sections_failed (int): Number of sections replaced by placeholders
    """
    sleep = sleep or time.sleep
    sections = split_into_sections(text)
    logger.info(f"Starting sectioned analysis: {len(sections)} sections, {len(text)} chars")

    section_results: List[Dict] = []

    for i, section in enumerate(sections):
        if i > 0 and delay_seconds > 0:
            sleep(delay_seconds)

        logger.info(f"Analyzing section {i + 1}/{len(sections)}: {section.name}")

        try:
            analysis = client.complete(
                SECTION_SYSTEM_PROMPT,
                build_section_prompt(section.name, section.text, location),
                max_tokens=section_max_tokens,
            )
            status = 'ok'
        except Exception as e:
            logger.warning(f"Section '{section.name}' analysis failed: {type(e).__name__} - {e}")
            analysis = _section_error_placeholder(section.name, e)
            status = 'error'

        section_results.append({
            'section': section.name,
            'analysis': analysis,
            'status': status,
        })

    failed = sum(1 for result in section_results if result['status'] == 'error')
    logger.info(f"Section pass complete: {len(section_results)} sections, {failed} failed")

    report = client.complete(
        SYNTHESIS_SYSTEM_PROMPT,
        build_synthesis_prompt(section_results, location),
        max_tokens=synthesis_max_tokens,
    )

    return {
        'comprehensive_report': report,
        'section_analyses': section_results,
        'sections_analyzed': len(section_results),
        'sections_failed': failed,
    }
