# Overview: Flask API routes for product image upload, deletion and serving.

# backend/pocketpos/routes/uploads.py
"""
Image upload endpoints.

- POST   /api/upload              multipart field "file" -> {"url", "name"}
- DELETE /api/delete-image?url=   url must be under /uploads/
- GET    /uploads/<name>          serves stored files

Wrong methods get a JSON 405 from the app-wide handler in routes/system.py.
"""

import os

from flask import Blueprint, current_app, jsonify, request, send_from_directory

from ..services.upload_service import UploadError, delete_upload, save_upload

uploads_bp = Blueprint("uploads", __name__)


def _upload_folder() -> str:
    return os.path.abspath(current_app.config["UPLOAD_FOLDER"])


@uploads_bp.post("/api/upload")
def upload_image():
    try:
        result = save_upload(request.files.get("file"), _upload_folder())
    except UploadError as e:
        return jsonify({"error": str(e)}), e.status
    except OSError:
        current_app.logger.exception("Upload failed")
        return jsonify({"error": "Internal server error"}), 500
    return jsonify(result), 200


@uploads_bp.delete("/api/delete-image")
def delete_image():
    try:
        delete_upload(request.args.get("url"), _upload_folder())
    except UploadError as e:
        if e.status >= 500:
            current_app.logger.exception("Image deletion failed")
        return jsonify({"error": str(e)}), e.status
    return jsonify({"success": True}), 200


@uploads_bp.get("/uploads/<path:name>")
def serve_upload(name: str):
    response = send_from_directory(_upload_folder(), name)
    # Stored files are never run as script or sniffed into another type
    response.headers["Content-Security-Policy"] = "default-src 'none'; style-src 'unsafe-inline'; sandbox"
    response.headers["X-Content-Type-Options"] = "nosniff"
    return response
