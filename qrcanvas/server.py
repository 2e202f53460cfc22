"""HTTP download service: POST render options, get the PNG/SVG back as an attachment."""

from qrcanvas.config import RenderConfig
from qrcanvas.errors import EncodingUnavailableError, InvalidInputError
from qrcanvas.export import default_filename
from qrcanvas.generator import QRGenerator
from qrcanvas.logging import audit, get_logger, trace
from qrcanvas.logo import LogoSource

log = get_logger("server")


def _attachment(artifact, warnings: list[str] | None = None):
    from flask import Response

    resp = Response(artifact.to_bytes(), mimetype=artifact.mime_type)
    resp.headers["Content-Disposition"] = f'attachment; filename="{default_filename(artifact.format)}"'
    if warnings:
        resp.headers["X-QR-Warnings"] = "; ".join(w.replace("\n", " ") for w in warnings)
    return resp


@trace
def create_app(generator: QRGenerator | None = None):
    """Create a Flask app serving QR code downloads.

    Routes:
        POST /api/qr       JSON {text, size, ecc, format, foreground, background, logo}
        GET  /api/current  the most recently committed artifact
    """
    from flask import Flask, jsonify, request

    app = Flask(__name__)
    gen = generator or QRGenerator()
    app.config["QR_GENERATOR"] = gen

    @app.errorhandler(InvalidInputError)
    def invalid_input(e):
        audit("http.400", logger=log, error=str(e))
        return jsonify({"error": str(e)}), 400

    @app.errorhandler(EncodingUnavailableError)
    def encoding_unavailable(e):
        audit("http.422", logger=log, error=str(e))
        return jsonify({"error": str(e)}), 422

    @app.route("/api/qr", methods=["POST"])
    def generate_qr():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "Request body must be a JSON object"}), 400
        if not str(data.get("text") or "").strip():
            return jsonify({"error": "Missing 'text' field"}), 400

        config = RenderConfig.from_options(data)
        logo = LogoSource.from_data_url(data["logo"]) if data.get("logo") else None
        result = gen.generate(str(data["text"]).strip(), config, logo=logo)
        audit("http.qr", logger=log, format=config.format.value, size=config.size,
              generation=result.generation, warnings=len(result.warnings))
        return _attachment(result.artifact, result.warnings)

    @app.route("/api/current")
    def current_qr():
        artifact = gen.current
        if artifact is None:
            return jsonify({"error": "No QR code generated yet"}), 404
        return _attachment(artifact)

    return app
