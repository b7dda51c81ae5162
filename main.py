from flask import Flask, render_template, request, jsonify
import os
import logging
from datetime import datetime, timezone
from dotenv import load_dotenv
from werkzeug.exceptions import RequestEntityTooLarge
from werkzeug.middleware.proxy_fix import ProxyFix

# Import analysis services
from quote_analyzer.services.text_extractor import extract_text, assess_content, DocumentError
from quote_analyzer.services.llm_client import QuoteLLMClient
from quote_analyzer.services.analysis_orchestrator import analyze_single_pass, analyze_sections
from quote_analyzer.utils.responses import input_error_response, provider_error_response

# Load environment variables before reading configuration
load_dotenv()

logging.basicConfig(
    level=os.getenv('LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
)
logger = logging.getLogger(__name__)

ANALYSIS_MODES = ('sectioned', 'single')

app = Flask(__name__, static_folder='quote_analyzer/static', template_folder='quote_analyzer/templates')

# Trust X-Forwarded-* headers from the hosting reverse proxy
app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

# OpenAI configuration
app.config['OPENAI_API_KEY'] = os.getenv('OPENAI_API_KEY')
app.config['OPENAI_MODEL'] = os.getenv('OPENAI_MODEL', 'gpt-4o-mini')
app.config['OPENAI_TEMPERATURE'] = float(os.getenv('OPENAI_TEMPERATURE', '0.3'))
app.config['OPENAI_MAX_OUTPUT_TOKENS'] = int(os.getenv('OPENAI_MAX_OUTPUT_TOKENS', '4000'))
app.config['OPENAI_TIMEOUT_SECONDS'] = float(os.getenv('OPENAI_TIMEOUT_SECONDS', '60'))
app.config['OPENAI_MAX_ATTEMPTS'] = int(os.getenv('OPENAI_MAX_ATTEMPTS', '1'))

# Analysis configuration
app.config['ANALYSIS_MODE'] = os.getenv('ANALYSIS_MODE', 'sectioned').lower()
app.config['MAX_INPUT_TOKENS'] = int(os.getenv('MAX_INPUT_TOKENS', '25000'))
app.config['SECTION_CALL_DELAY_SECONDS'] = float(os.getenv('SECTION_CALL_DELAY_SECONDS', '1.0'))
app.config['SECTION_MAX_OUTPUT_TOKENS'] = int(os.getenv('SECTION_MAX_OUTPUT_TOKENS', '1500'))
app.config['MAX_CONTENT_LENGTH'] = int(os.getenv('MAX_UPLOAD_MB', '20')) * 1024 * 1024

if app.config['ANALYSIS_MODE'] not in ANALYSIS_MODES:
    logger.warning(f"Unknown ANALYSIS_MODE '{app.config['ANALYSIS_MODE']}', using 'sectioned'")
    app.config['ANALYSIS_MODE'] = 'sectioned'

logger.info(
    f"App configured: mode={app.config['ANALYSIS_MODE']}, model={app.config['OPENAI_MODEL']}, "
    f"api_key_set={bool(app.config['OPENAI_API_KEY'])}"
)

# Model client shared by all requests; replaced with a fake in tests
llm_client = QuoteLLMClient.from_config(app.config)


@app.errorhandler(RequestEntityTooLarge)
def upload_too_large(e):
    limit_mb = app.config['MAX_CONTENT_LENGTH'] // (1024 * 1024)
    return input_error_response(f'File is too large. Please upload a file smaller than {limit_mb} MB.', 413)


@app.route('/')
def index():
    return render_template('index.html')


@app.route('/health')
def health():
    return jsonify({
        'status': 'ok',
        'mode': app.config['ANALYSIS_MODE'],
        'model': app.config['OPENAI_MODEL']
    })


@app.route('/api/analyze', methods=['POST'])
def analyze_quote():
    """Extract text from an uploaded quote and return the model's analysis"""
    logger.info('Analysis request received')

    file = request.files.get('file')
    if file is None:
        return jsonify({'ok': False, 'error': 'No file provided'}), 400

    if not file.filename:
        return jsonify({'ok': False, 'error': 'No file selected'}), 400

    location = (request.form.get('location') or '').strip() or None
    content = file.read()
    file_info = {
        'name': file.filename,
        'size': len(content),
        'type': file.mimetype
    }

    logger.info(f"Processing file: {file_info['name']} ({file_info['size']} bytes, type: {file_info['type']})")

    # Extract and truncate text from file
    try:
        text = extract_text(content, file.filename, file.mimetype, max_tokens=app.config['MAX_INPUT_TOKENS'])
    except DocumentError as e:
        logger.warning(f"Extraction failed for {file.filename}: {e}")
        return input_error_response(str(e))

    logger.info(f"Final text length: {len(text)} characters")

    warnings = assess_content(text)
    mode = app.config['ANALYSIS_MODE']

    try:
        if mode == 'single':
            analysis = analyze_single_pass(text, llm_client, file_info, location=location, warnings=warnings)
        else:
            analysis = analyze_sections(
                text,
                llm_client,
                location=location,
                delay_seconds=app.config['SECTION_CALL_DELAY_SECONDS'],
                section_max_tokens=app.config['SECTION_MAX_OUTPUT_TOKENS'],
                synthesis_max_tokens=app.config['OPENAI_MAX_OUTPUT_TOKENS']
            )
    except Exception as e:
        logger.exception(f"Analysis failed: {type(e).__name__} - {e}")
        return provider_error_response(e)

    logger.info('Analysis complete, sending response')

    response = {
        'ok': True,
        'analysis': analysis,
        'filename': file.filename,
        'filesize': len(content),
        'mode': mode,
        'analyzed_at': datetime.now(timezone.utc).isoformat()
    }

    if warnings:
        response['warnings'] = warnings

    if location:
        response['location'] = location

    return jsonify(response)


if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=int(os.getenv('PORT', '5000')))
