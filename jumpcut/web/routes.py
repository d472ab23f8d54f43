"""HTTP routes: upload, render, preview and save."""

import json
import logging
import queue
import shutil
import threading
import uuid
from pathlib import Path

from flask import (
    Blueprint,
    Response,
    current_app,
    jsonify,
    request,
    send_file,
)

from jumpcut.engine import process, process_to_buffer
from jumpcut.errors import InvalidArgumentError, JumpCutError, ProcessingCancelled
from jumpcut.manifest import BUFFER_FORMATS, ProcessingConfig

logger = logging.getLogger(__name__)

bp = Blueprint("api", __name__)

MIMETYPES = {
    "mp4": "video/mp4",
    "mov": "video/quicktime",
    "avi": "video/x-msvideo",
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
}

# In-memory job store: job_id -> job dict
_jobs: dict[str, dict] = {}


def _config_from_json(data: dict) -> ProcessingConfig:
    """Build a ProcessingConfig from a request body, raising InvalidArgumentError."""
    try:
        config = ProcessingConfig(
            silence_threshold_db=float(data.get("silence_threshold_db", -30.0)),
            min_silence_duration=float(data.get("min_silence_duration", 0.5)),
            speed_factor=float(data.get("speed_factor", 2.0)),
            mode=data.get("mode", "remove"),
        )
    except (TypeError, ValueError) as e:
        raise InvalidArgumentError(str(e)) from None
    config.validate()
    return config


def _get_job(job_id: str) -> dict | None:
    return _jobs.get(job_id)


@bp.route("/api/upload", methods=["POST"])
def upload():
    if "file" not in request.files:
        return jsonify({"error": "No file provided"}), 400

    f = request.files["file"]
    if not f.filename:
        return jsonify({"error": "Empty filename"}), 400

    job_id = uuid.uuid4().hex[:12]
    job_dir = Path(current_app.config["WORK_DIR"]) / job_id
    job_dir.mkdir(parents=True, exist_ok=True)

    ext = Path(f.filename).suffix or ".mp4"
    input_path = job_dir / f"input{ext}"
    f.save(input_path)

    _jobs[job_id] = {
        "dir": job_dir,
        "input_path": input_path,
        "filename": f.filename,
        "status": "uploaded",
    }

    return jsonify({"job_id": job_id, "filename": f.filename})


@bp.route("/api/jobs/<job_id>/process", methods=["POST"])
def start_process(job_id: str):
    job = _get_job(job_id)
    if job is None:
        return jsonify({"error": "Job not found"}), 404
    if job["status"] not in ("uploaded", "done", "error", "cancelled"):
        return jsonify({"error": f"Job is already {job['status']}"}), 409

    body = request.get_json(silent=True) or {}
    try:
        config = _config_from_json(body)
    except InvalidArgumentError as e:
        return jsonify({"error": str(e)}), 400

    input_path = job["input_path"]
    default_format = input_path.suffix.lstrip(".").lower()
    if default_format not in BUFFER_FORMATS:
        default_format = "mp4"
    output_format = str(body.get("output_format", default_format)).lower().lstrip(".")
    if output_format not in BUFFER_FORMATS:
        return jsonify({
            "error": f"Unsupported output format {output_format!r}; "
                     f"expected one of {', '.join(BUFFER_FORMATS)}"
        }), 400
    output_path = job["dir"] / f"output.{output_format}"

    progress_queue: queue.Queue = queue.Queue()
    cancel = threading.Event()
    job["progress_queue"] = progress_queue
    job["cancel"] = cancel
    job["status"] = "processing"
    job["error"] = None

    def run():
        try:
            def on_progress(stage: str, frac: float):
                progress_queue.put({"stage": stage, "progress": round(frac, 3)})

            result = process(
                input_path, output_path, config, on_progress=on_progress, cancel=cancel
            )
            job["result"] = {
                "output_path": str(result.output_path),
                "mode": result.mode.value,
                "duration_original": result.duration_original,
                "duration_final": result.duration_final,
                "silences_found": result.silences_found,
                "segments": len(result.segments),
                "passthrough": result.passthrough,
            }
            job["status"] = "done"
        except ProcessingCancelled:
            job["status"] = "cancelled"
        except JumpCutError as e:
            job["status"] = "error"
            job["error"] = str(e)
        except Exception as e:
            logger.exception("Job %s failed", job_id)
            job["status"] = "error"
            job["error"] = str(e)
        finally:
            progress_queue.put(None)  # sentinel

    threading.Thread(target=run, daemon=True).start()
    return jsonify({"status": "started"})


@bp.route("/api/jobs/<job_id>/progress")
def progress_stream(job_id: str):
    job = _get_job(job_id)
    if job is None:
        return jsonify({"error": "Job not found"}), 404

    q = job.get("progress_queue")
    if q is None:
        return jsonify({"error": "No processing in progress"}), 409

    def generate():
        while True:
            try:
                msg = q.get(timeout=120)
            except queue.Empty:
                yield "data: {\"error\": \"timeout\"}\n\n"
                break
            if msg is None:
                if job["status"] == "error":
                    data = json.dumps({"error": job["error"]})
                elif job["status"] == "cancelled":
                    data = json.dumps({"stage": "cancelled"})
                else:
                    data = json.dumps({
                        "stage": "complete",
                        "progress": 1.0,
                        "result": job.get("result"),
                    })
                yield f"data: {data}\n\n"
                break
            yield f"data: {json.dumps(msg)}\n\n"

    return Response(generate(), mimetype="text/event-stream")


@bp.route("/api/jobs/<job_id>/preview", methods=["POST"])
def preview(job_id: str):
    """Render synchronously and return the bytes without keeping a file."""
    job = _get_job(job_id)
    if job is None:
        return jsonify({"error": "Job not found"}), 404

    body = request.get_json(silent=True) or {}
    output_format = str(body.get("output_format", "mp4")).lower()
    try:
        config = _config_from_json(body)
        data = process_to_buffer(job["input_path"], config, output_format)
    except InvalidArgumentError as e:
        return jsonify({"error": str(e)}), 400
    except JumpCutError as e:
        return jsonify({"error": str(e)}), 500

    return Response(data, mimetype=MIMETYPES.get(output_format, "application/octet-stream"))


@bp.route("/api/jobs/<job_id>/cancel", methods=["POST"])
def cancel_job(job_id: str):
    job = _get_job(job_id)
    if job is None:
        return jsonify({"error": "Job not found"}), 404
    if job["status"] != "processing":
        return jsonify({"error": "Job is not processing"}), 409

    job["cancel"].set()
    return jsonify({"status": "cancelling"})


@bp.route("/api/jobs/<job_id>/result")
def download_result(job_id: str):
    job = _get_job(job_id)
    if job is None:
        return jsonify({"error": "Job not found"}), 404
    if job["status"] != "done":
        return jsonify({"error": "Job not complete"}), 409

    output_path = Path(job["result"]["output_path"])
    return send_file(output_path, as_attachment=False)


@bp.route("/api/jobs/<job_id>/save", methods=["POST"])
def save_result(job_id: str):
    """Copy the finished render to a destination path on this machine."""
    job = _get_job(job_id)
    if job is None:
        return jsonify({"error": "Job not found"}), 404
    if job["status"] != "done":
        return jsonify({"error": "Job not complete"}), 409

    body = request.get_json(silent=True) or {}
    destination = body.get("destination")
    if not destination:
        return jsonify({"error": "No destination provided"}), 400

    destination = Path(destination)
    if not destination.parent.is_dir():
        return jsonify({"error": f"Directory does not exist: {destination.parent}"}), 400

    shutil.copy2(job["result"]["output_path"], destination)
    return jsonify({"saved": str(destination)})


@bp.route("/api/jobs/<job_id>/status")
def job_status(job_id: str):
    job = _get_job(job_id)
    if job is None:
        return jsonify({"error": "Job not found"}), 404

    resp = {"status": job["status"], "filename": job.get("filename")}
    if job["status"] == "done":
        resp["result"] = job.get("result")
    if job["status"] == "error":
        resp["error"] = job.get("error")
    return jsonify(resp)


@bp.route("/api/jobs/<job_id>", methods=["DELETE"])
def delete_job(job_id: str):
    job = _get_job(job_id)
    if job is None:
        return jsonify({"error": "Job not found"}), 404
    if job["status"] == "processing":
        return jsonify({"error": "Cancel the job before deleting it"}), 409

    shutil.rmtree(job["dir"], ignore_errors=True)
    del _jobs[job_id]
    return jsonify({"status": "deleted"})
