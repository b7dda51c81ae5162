"""
Quote analysis services package.
"""
from quote_analyzer.services.text_extractor import (
    extract_text,
    truncate_text,
    assess_content,
    DocumentError
)
from quote_analyzer.services.sectioner import split_into_sections, Section
from quote_analyzer.services.llm_client import QuoteLLMClient, is_rate_limit_error
from quote_analyzer.services.analysis_orchestrator import analyze_single_pass, analyze_sections

__all__ = [
    'extract_text',
    'truncate_text',
    'assess_content',
    'DocumentError',
    'split_into_sections',
    'Section',
    'QuoteLLMClient',
    'is_rate_limit_error',
    'analyze_single_pass',
    'analyze_sections'
]
