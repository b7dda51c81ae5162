"""
JSON error responses for the analyze endpoint.
"""
import logging
from flask import jsonify

from quote_analyzer.services.llm_client import is_rate_limit_error

logger = logging.getLogger(__name__)

FILE_TYPE_GUIDANCE = {
    'supported_formats': ['Text files (.txt)', 'PDF documents', 'Word documents'],
    'tips': [
        'For best results, use clear text files',
        'PDFs work well if they contain selectable text',
        'Scanned documents may have limited text extraction',
        'Large files are automatically truncated to prevent rate limit issues',
    ],
}


def input_error_response(message: str, status: int = 400):
    """Bad, empty or unreadable upload."""
    return jsonify({
        'ok': False,
        'error': message,
        'file_type_guidance': FILE_TYPE_GUIDANCE,
    }), status


def provider_error_response(error: Exception):
    """Map a failure during model analysis to a 429 or 500 response."""
    if is_rate_limit_error(error):
        logger.warning(f"Rate limit reached: {error}")
        return jsonify({
            'ok': False,
            'error': 'Rate limit exceeded. Please wait a moment and try again with a smaller file.',
            'details': 'Try uploading a shorter document or wait 60 seconds before retrying.',
            'rate_limit_info': {
                'suggestion': 'For large documents, consider copying just the essential quote information into a text file.'
            },
        }), 429

    return jsonify({
        'ok': False,
        'error': str(error) or 'Analysis failed',
        'details': 'Check your OpenAI API key and try again',
        'suggestions': [
            'Verify that the analysis service is configured with a valid API key',
            'Wait a few moments and retry the upload',
            'If the problem persists, try a smaller or text-only version of the quote',
        ],
    }), 500
