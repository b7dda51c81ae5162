"""
Run the Quote Analyzer with the Waitress WSGI server (production-grade, no reloader)
"""
import os
from waitress import serve
from main import app

if __name__ == '__main__':
    port = int(os.getenv('PORT', '5000'))

    print("\n" + "="*70)
    print("Starting Quote Analyzer with Waitress WSGI Server")
    print(f"Analysis mode: {app.config['ANALYSIS_MODE']} | Listening on port {port}")
    print("="*70 + "\n")

    # Model calls block for several seconds, so keep a few worker threads
    serve(app, host='0.0.0.0', port=port, threads=4)
