#!/usr/bin/env python3
"""
Painterly Photo Stylizer API Server
Accepts a photo upload and returns the stylized picture as a data URL.
"""

import os
import logging

from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from flask import Flask, request, jsonify
from flask_cors import CORS

# --- Centralized Logging Configuration ---
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
    datefmt='%H:%M:%S'
)

from painterly.models.errors import DecodeFailure, StylizationError
from painterly.models.transformation_result import TransformationResult
from painterly.pipeline.stylizer import StylizationPipeline
from painterly.services.upload_validation_service import UploadValidationService

app = Flask(__name__)
CORS(app)  # Enable CORS for frontend communication

# Initialize services
upload_validator = UploadValidationService()
pipeline = StylizationPipeline()

# Multipart framing adds a little on top of the file itself; the validator
# enforces the exact file-size cap.
app.config['MAX_CONTENT_LENGTH'] = upload_validator.max_bytes + 1024 * 1024

logger = logging.getLogger(__name__)


def _failure(message: str, status: int):
    return jsonify({'success': False, 'message': message}), status


@app.route('/api/transform', methods=['POST'])
def transform():
    """Validate the uploaded photo and run the stylization pipeline on it."""
    if 'image' not in request.files:
        return _failure('No image file uploaded', 400)

    file = request.files['image']
    if file.filename == '':
        return _failure('No file selected', 400)

    data = file.read()
    validation = upload_validator.validate(file.mimetype, len(data))
    if not validation.valid:
        return _failure(validation.message, 400)

    logger.info(f"Transforming upload {file.filename!r} ({len(data)} bytes)")
    try:
        output = pipeline.stylize(data)
    except DecodeFailure as e:
        logger.error(f"Upload could not be decoded: {e}")
        return _failure(e.user_message, 422)
    except StylizationError as e:
        logger.error(f"Error transforming image: {e}")
        return _failure(e.user_message, 500)

    result = TransformationResult.succeeded(pipeline.image_service.to_data_url(output))
    return jsonify(result.to_dict())


@app.route('/api/health', methods=['GET'])
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'healthy',
        'message': 'Painterly Photo Stylizer API is running',
    })


@app.errorhandler(413)
def too_large(e):
    """Handle file too large error."""
    return _failure(f'File too large. Maximum size is {upload_validator.max_size_mb:g}MB.', 413)


@app.errorhandler(400)
def bad_request(e):
    """Handle bad request error."""
    return _failure('Bad request', 400)


@app.errorhandler(500)
def internal_error(e):
    """Handle internal server error."""
    logger.error(f"Internal server error: {e}")
    return _failure('Failed to transform image', 500)


def main():
    host = os.getenv("API_HOST", "127.0.0.1")
    port = int(os.getenv("API_PORT", "5000"))
    print("🚀 Starting Painterly Photo Stylizer API Server...")
    print(f"🔧 Max upload size: {upload_validator.max_size_mb:g}MB")
    print(f"🖼  Working size: {pipeline.image_service.MAX_SIZE}px, output {pipeline.image_service.OUTPUT_FORMAT}")
    print("🌐 CORS enabled for frontend communication")
    print("="*60)
    app.run(host=host, port=port, debug=False, threaded=True)


if __name__ == '__main__':
    main()
