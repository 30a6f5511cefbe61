"""
Flask routes for Photo Booth Print Compositor
Thin JSON layer: parse the request, look up the event, hand off to the pipeline
"""

import io
import json
import time
import uuid
from functools import lru_cache
from pathlib import Path
from typing import Any, List, Optional

from flask import Blueprint, current_app, jsonify, request, send_file, send_from_directory, url_for
from PIL import Image, ImageDraw
from loguru import logger

from .canvas import DEFAULT_CANVAS, LayoutKind
from .composite import CompositeSettings, create_composite_engine
from .config import EventConfig
from .correction import apply_printer_correction
from .errors import (
    ValidationError, EventNotFoundError, LayoutNotAllowedError,
    InvalidImageFormatError, FileTooLargeError
)
from .layout import clamp_ratio, layout_options
from .logo import LogoSettings, load_logo_bytes
from .pipeline import LogoInput, render_image
from .utils import allowed_file, parse_bool


bp = Blueprint('api', __name__)


def get_event(slug: str) -> EventConfig:
    """Look up an event in the catalogue loaded at startup"""
    if not slug:
        raise ValidationError("Event slug is required")
    event = current_app.config.get('EVENTS', {}).get(slug)
    if event is None:
        raise EventNotFoundError(slug)
    return event


def read_upload(file) -> bytes:
    """Validate an uploaded photo's name and size and return its bytes"""
    filename = file.filename or ''
    if filename and Path(filename).suffix and \
            not allowed_file(filename, current_app.config['ALLOWED_EXTENSIONS']):
        raise InvalidImageFormatError(filename, f"Extension: {Path(filename).suffix.lower()}")

    data = file.read()
    max_size = current_app.config.get('MAX_UPLOAD_SIZE', 20 * 1024 * 1024)
    if len(data) > max_size:
        raise FileTooLargeError(
            filename=filename,
            size_mb=len(data) / (1024 * 1024),
            limit_mb=max_size / (1024 * 1024)
        )
    return data


def parse_json_field(name: str, default: Any = None) -> Any:
    """Parse a JSON form field; malformed JSON is logged and ignored"""
    raw = request.form.get(name)
    if not raw:
        return default
    try:
        return json.loads(raw)
    except ValueError as e:
        logger.error(f"Failed to parse {name}: {e}")
        return default


def collect_crops(kind: LayoutKind) -> Optional[List[Any]]:
    if kind.is_single_photo:
        crop = parse_json_field('cropArea')
        if crop is None:
            crops = parse_json_field('cropAreas')
            return crops if isinstance(crops, list) and len(crops) == 1 else None
        return [crop]

    crops = parse_json_field('cropAreas')
    if crops is not None and not isinstance(crops, list):
        logger.warning(f"Ignoring cropAreas of type {type(crops).__name__}")
        return None
    return crops


def event_logo(event: EventConfig, settings: LogoSettings = None) -> Optional[LogoInput]:
    if not event.logo_path:
        return None
    return LogoInput(load_logo_bytes(event.logo_path), settings or event.logo_settings)


def composite_settings() -> CompositeSettings:
    return CompositeSettings(quality=current_app.config.get('JPEG_QUALITY', 95))


@lru_cache(maxsize=1)
def generated_sample_photo() -> bytes:
    """A stand-in guest photo for logo previews when no sample is configured"""
    width, height = DEFAULT_CANVAS.size
    image = Image.new('RGB', (width, height), (96, 125, 160))
    draw = ImageDraw.Draw(image)
    for y in range(0, height, 4):
        shade = 90 + (y * 110) // height
        draw.rectangle([0, y, width, y + 4], fill=(shade, shade + 20, 200))
    draw.ellipse([width // 4, height // 4, width * 3 // 4, height * 3 // 4 - 100], fill=(240, 200, 170))

    buffer = io.BytesIO()
    image.save(buffer, format='JPEG', quality=90)
    return buffer.getvalue()


def sample_photo_bytes() -> bytes:
    sample = current_app.config.get('SAMPLE_PHOTO')
    if sample and Path(sample).is_file():
        return Path(sample).read_bytes()
    return generated_sample_photo()


@bp.route('/health', methods=['GET'])
def health():
    return jsonify({'status': 'ok'})


@bp.route('/api/layouts', methods=['GET'])
def layouts():
    """Layouts with photo counts and the crop aspect ratio of every slot"""
    slug = request.args.get('slug')
    ratio = request.args.get('ratio', type=float)
    allowed = None

    if slug:
        event = get_event(slug)
        allowed = event.layouts
        if ratio is None:
            ratio = event.photo_area_ratio

    return jsonify({
        'canvas': {'width': DEFAULT_CANVAS.width, 'height': DEFAULT_CANVAS.height,
                   'dpi': DEFAULT_CANVAS.dpi},
        'photoAreaRatio': clamp_ratio(ratio),
        'layouts': layout_options(ratio, allowed=allowed),
    })


@bp.route('/api/process-image', methods=['POST'])
def process_image():
    """Compose a print from uploaded photos and store it"""
    request_id = uuid.uuid4().hex[:8]
    event = get_event(request.form.get('slug', '').strip())
    kind = LayoutKind.parse(request.form.get('frameType') or 'single')

    if not event.allows(kind):
        raise LayoutNotAllowedError(kind.value, event.slug, event.layouts)

    if kind.is_single_photo:
        uploads = [request.files['photo']] if 'photo' in request.files else request.files.getlist('photos')
    else:
        uploads = request.files.getlist('photos')
    photos = [read_upload(file) for file in uploads]

    crops = collect_crops(kind)
    rotations = parse_json_field('rotations')
    background_color = request.form.get('backgroundColor') or event.background_color

    logger.info(f"Request {request_id}: event={event.slug} layout={kind.value} photos={len(photos)} "
                f"crops={'yes' if crops else 'no'} background={background_color}")

    image = render_image(
        photos,
        crops=crops,
        rotations=rotations,
        layout=kind,
        background_color=background_color,
        logo=event_logo(event),
        photo_area_ratio=event.photo_area_ratio,
        max_workers=current_app.config.get('RENDER_WORKERS', 4)
    )

    if parse_bool(request.form.get('printReady')):
        image = apply_printer_correction(
            image,
            current_app.config['PRINT_SHRINK_PERCENT'],
            current_app.config['PRINT_VERTICAL_OFFSET_PX']
        )

    settings = composite_settings()
    data = create_composite_engine().get_image_bytes(image, settings)

    filename = f"processed-{int(time.time() * 1000)}-{request_id}{settings.extension}"
    output_dir = Path(current_app.config['OUTPUT_FOLDER'])
    output_dir.mkdir(parents=True, exist_ok=True)
    (output_dir / filename).write_bytes(data)

    logger.info(f"Request {request_id}: saved {filename} ({len(data):,} bytes)")
    return jsonify({'url': url_for('api.serve_image', filename=filename), 'layout': kind.value})


@bp.route('/api/preview-logo', methods=['POST'])
def preview_logo():
    """Render a sample photo with the event logo so organizers can tune placement"""
    body = request.get_json(silent=True) or {}
    event = get_event(str(body.get('slug', '')).strip())

    settings = event.logo_settings
    if body.get('logoSettings') is not None:
        settings = LogoSettings.from_config(body['logoSettings'])
    ratio = body.get('photoAreaRatio', event.photo_area_ratio)

    image = render_image(
        [sample_photo_bytes()],
        layout=LayoutKind.SINGLE_WITH_LOGO,
        background_color='#FFFFFF',
        logo=event_logo(event, settings),
        photo_area_ratio=ratio
    )
    settings_out = composite_settings()
    data = create_composite_engine().get_image_bytes(image, settings_out)

    response = send_file(io.BytesIO(data), mimetype=settings_out.mimetype)
    response.headers['Cache-Control'] = 'no-store'
    return response


@bp.route('/api/images/<path:filename>', methods=['GET'])
def serve_image(filename):
    """Serve a stored print"""
    output_dir = Path(current_app.config['OUTPUT_FOLDER']).resolve()
    return send_from_directory(output_dir, filename)
