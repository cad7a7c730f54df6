#!/usr/bin/env python3
"""
Background Remover API Server
Stateless: every request uploads one image and gets the PNG result back.
"""

import os
import logging
import base64
from typing import Optional

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from flask import Flask, request, jsonify
from flask_cors import CORS
from werkzeug.utils import secure_filename

from .models.errors import BackgroundRemovalError, InvalidOptionsError
from .models.image import Image
from .models.options import SegmentationOptions
from .pipeline.background_remover import remove_background
from .pipeline.color_replacer import build_replacement, replace_colors
from .services.image_service import ImageService

app = Flask(__name__)
CORS(app)  # Enable CORS for frontend communication

# Configuration
ALLOWED_EXTENSIONS = set(os.getenv("ALLOWED_EXTENSIONS", "png,jpg,jpeg,gif,bmp,webp").split(","))
MAX_CONTENT_LENGTH = int(os.getenv("MAX_UPLOAD_SIZE_MB", "10")) * 1024 * 1024
DEFAULT_TOLERANCE = int(os.getenv("DEFAULT_TOLERANCE", "30"))
DEFAULT_SMOOTHING = int(os.getenv("DEFAULT_SMOOTHING", "2"))
DEFAULT_FEATHER = int(os.getenv("DEFAULT_FEATHER", "2"))
DEFAULT_COLOR_TOLERANCE = int(os.getenv("DEFAULT_COLOR_TOLERANCE", "30"))

app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH

# Initialize services
image_service = ImageService()

logger = logging.getLogger(__name__)


def allowed_file(filename: str) -> bool:
    """Check if file extension is allowed."""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def image_to_base64(image: Image) -> str:
    """Convert Image object to a PNG data URL (alpha preserved)."""
    base64_string = base64.b64encode(image_service.encode_png(image)).decode('utf-8')
    return f"data:image/png;base64,{base64_string}"


def form_int(name: str, default: Optional[int] = None) -> int:
    """Read an integer form field; malformed values are rejected, not coerced."""
    raw = request.form.get(name)
    if raw is None or raw == '':
        if default is None:
            raise InvalidOptionsError(f"Missing required field '{name}'")
        return default
    try:
        return int(raw)
    except ValueError:
        raise InvalidOptionsError(f"Field '{name}' must be an integer, got {raw!r}") from None


def read_upload() -> Image:
    """Pull the 'image' file out of the request and decode it."""
    if 'image' not in request.files:
        raise FileNotFoundError('No image provided')

    file = request.files['image']
    filename = secure_filename(file.filename or '')
    if filename == '':
        raise FileNotFoundError('No file selected')
    if not allowed_file(filename):
        raise ValueError(f'File type not allowed: {filename}')

    return image_service.decode(file.read())


def success_response(image: Image):
    return jsonify({
        'success': True,
        'image': image_to_base64(image),
        'width': image.width,
        'height': image.height,
    })


@app.route('/api/segment', methods=['POST'])
def segment():
    """Remove the background region under the clicked point."""
    image = read_upload()
    x, y = form_int('x'), form_int('y')
    options = SegmentationOptions(
        tolerance=form_int('tolerance', DEFAULT_TOLERANCE),
        smoothing=form_int('smoothing', DEFAULT_SMOOTHING),
        feather=form_int('feather', DEFAULT_FEATHER),
    )

    replacement = None
    if request.form.get('replace_from') or request.form.get('replace_to'):
        replacement = build_replacement(
            request.form.get('replace_from', ''),
            request.form.get('replace_to', ''),
            form_int('replace_tolerance', DEFAULT_COLOR_TOLERANCE),
        )

    logger.info(f"Segment request: {image.width}x{image.height} at ({x}, {y}) {options}")
    result = remove_background(image, x, y, options, replacement=replacement,
                               image_service=image_service)
    return success_response(result)


@app.route('/api/recolor', methods=['POST'])
def recolor():
    """Replace one color with another on every visible pixel."""
    image = read_upload()
    replacement = build_replacement(
        request.form.get('from_color', ''),
        request.form.get('to_color', ''),
        form_int('tolerance', DEFAULT_COLOR_TOLERANCE),
    )
    logger.info(f"Recolor request: {image.width}x{image.height}")
    result = replace_colors(image, replacement, image_service=image_service)
    return success_response(result)


@app.route('/api/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'healthy',
        'message': 'Background Remover API is running',
    })


@app.errorhandler(BackgroundRemovalError)
def core_error(e):
    """Invalid input reported by the core (bad seed, hex, options ...)."""
    logger.warning(f"{e.error_type}: {e}")
    return jsonify({'success': False, 'error_type': e.error_type, 'message': str(e)}), 400


@app.errorhandler(FileNotFoundError)
def missing_file(e):
    return jsonify({'success': False, 'error_type': 'missing_file', 'message': str(e)}), 400


@app.errorhandler(ValueError)
def invalid_upload(e):
    return jsonify({'success': False, 'error_type': 'invalid_upload', 'message': str(e)}), 400


@app.errorhandler(413)
def too_large(e):
    """Handle file too large error."""
    return jsonify({
        'success': False,
        'error_type': 'too_large',
        'message': f'File too large. Maximum size is {MAX_CONTENT_LENGTH // (1024 * 1024)}MB.',
    }), 413


@app.errorhandler(500)
def internal_error(e):
    """Handle internal server error."""
    logger.error(f"Internal server error: {e}")
    return jsonify({'success': False, 'error_type': 'internal', 'message': 'Internal server error'}), 500


def main():
    # --- Centralized Logging Configuration ---
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )
    host = os.getenv("API_HOST", "127.0.0.1")
    port = int(os.getenv("API_PORT", "5000"))
    logger.info(f"Starting Background Remover API on {host}:{port} "
                f"(max upload {MAX_CONTENT_LENGTH // (1024 * 1024)}MB)")
    app.run(host=host, port=port, debug=False)


if __name__ == '__main__':
    main()
