#!/usr/bin/env python3
"""
Flask Web Application for Profile Analyzer
Provides REST API endpoints for analyzing speedscope exports and runtime trace event dumps.
"""

from flask import Flask, request, jsonify
from werkzeug.utils import secure_filename
import os
import tempfile
from profile_analyzer import ProfileAnalyzer, ProfileConfig, ProfilerAnalysisError, __version__
from profile_analyzer.core import PROFILE_KINDS
from profile_analyzer.web import prepare_results

app = Flask(__name__)
app.config['MAX_CONTENT_LENGTH'] = 500 * 1024 * 1024
app.config['UPLOAD_FOLDER'] = tempfile.gettempdir()

ALLOWED_EXTENSIONS = {'json'}

def allowed_file(filename):
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def config_from_form(form):
    """
    Build a ProfileConfig from form fields.

    Raises:
        ValueError: If a numeric field is malformed or out of range
    """
    return ProfileConfig(
        include_runtime=form.get('include_runtime', 'false').lower() == 'true',
        use_self_time=form.get('use_self_time', 'false').lower() == 'true',
        max_depth=int(form.get('max_depth', 30)),
        max_width=int(form.get('max_width', 4)),
        sibling_cutoff_percent=float(form.get('sibling_cutoff', 5)),
        hot_threshold=float(form.get('hot_threshold', 0.4)),
        root_filter=form.get('root') or None,
        root_mode=form.get('root_mode', 'hottest').lower()
    )


@app.route('/api/health', methods=['GET'])
def health():
    """Liveness check."""
    return jsonify({'status': 'ok', 'version': __version__})


@app.route('/api/analyze', methods=['POST'])
def analyze_api():
    """
    API endpoint to analyze a profile file.
    Accepts: multipart/form-data with fields:
      - 'file': speedscope JSON export or trace event JSON dump
      - 'kind': speedscope|cpu|allocation|exception|contention (optional, default: 'speedscope')
      - 'include_runtime', 'use_self_time': 'true'|'false' (optional, default: 'false')
      - 'max_depth', 'max_width', 'sibling_cutoff', 'hot_threshold' (optional)
      - 'root', 'root_mode': re-root call trees at a matching function (optional)
    Returns: JSON with analysis results
    """
    if 'file' not in request.files:
        return jsonify({'error': 'No file provided'}), 400

    file = request.files['file']

    if not file.filename:
        return jsonify({'error': 'No file selected'}), 400

    if not allowed_file(file.filename):
        return jsonify({'error': 'Invalid file type. Only JSON files are allowed.'}), 400

    kind = request.form.get('kind', 'speedscope').lower()
    if kind not in PROFILE_KINDS:
        return jsonify({'error': f"Invalid kind '{kind}'. Expected one of: {', '.join(PROFILE_KINDS)}"}), 400

    try:
        config = config_from_form(request.form)
    except ValueError as e:
        return jsonify({'error': f'Invalid configuration: {e}'}), 400

    filename = secure_filename(file.filename)
    fd, filepath = tempfile.mkstemp(prefix='profile_', suffix=f'_{filename}', dir=app.config['UPLOAD_FOLDER'])
    os.close(fd)

    try:
        file.save(filepath)

        analyzer = ProfileAnalyzer(config)
        result = analyzer.analyze(filepath, kind)

        if result is None:
            return jsonify({'error': 'No usable profile data found in file.'}), 422
        if not result:
            return jsonify({'error': result.reason}), 422

        return jsonify(prepare_results(result, config))

    except ProfilerAnalysisError as e:
        return jsonify({'error': str(e)}), 500

    except Exception as e:
        return jsonify({'error': str(e)}), 500

    finally:
        if os.path.exists(filepath):
            os.remove(filepath)


if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5001)
