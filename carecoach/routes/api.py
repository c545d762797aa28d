"""
Defines JSON endpoints used by the front end.

Endpoints:
- /health: liveness check
- /plants: all plants with their current care state
- /plants/<id>/care-state: what one plant needs right now
- /plants/<id>/recommendation: weather-adjusted watering + fertilizer advice
- /plants/<id>/care (POST): log a care action
- /plants/<id> (DELETE): delete a plant and its care history
- /suggestions?surface=today: live coach suggestions
- /analytics/growth | /analytics/environment | /analytics/locations
"""

from datetime import datetime
from typing import Optional, Tuple

from flask import Blueprint, request, jsonify, current_app

from ..extensions import limiter
from ..models import CareType
from ..services.care_services import get_services
from ..services.care_store import CareStoreError, PlantNotFound
from ..services.seasonal_context import get_weather_care_message
from ..utils.errors import sanitize_error, log_info, log_warning, GENERIC_MESSAGES
from ..utils.validation import normalize_surface, parse_timestamp, validate_care_payload


api_bp = Blueprint("api", __name__)


@api_bp.before_request
def _enforce_ajax_for_mutations():
    """Enforce X-Requested-With header on all state-changing API requests.

    Custom headers cannot be set by cross-origin requests without CORS and
    HTML forms cannot set them, so every POST/PUT/DELETE/PATCH in this
    blueprint is protected without a per-endpoint decorator.
    """
    if request.method in ("POST", "PUT", "DELETE", "PATCH"):
        if request.headers.get("X-Requested-With") != "XMLHttpRequest":
            return jsonify({
                "success": False,
                "error": "Invalid request. Please refresh the page and try again."
            }), 403


def _not_found():
    return jsonify({"success": False, "error": GENERIC_MESSAGES["not_found"]}), 404


def _window_from_args() -> Tuple[Optional[Tuple[Optional[datetime], Optional[datetime]]], Optional[str]]:
    """Optional ?start=&end= ISO timestamps for analytics endpoints."""
    try:
        start = parse_timestamp(request.args.get("start"))
        end = parse_timestamp(request.args.get("end"))
    except ValueError:
        return None, "start/end must be ISO-8601 date-times."
    if start is None and end is None:
        return None, None
    if any(t is not None and t.tzinfo is None for t in (start, end)):
        return None, "start/end must include a time zone offset."
    if start and end and start > end:
        return None, "start must be before end."
    return (start, end), None


@api_bp.route("/health")
def health():
    return jsonify({"status": "ok"})


@api_bp.route("/plants")
def list_plants():
    services = get_services()
    states = services.care_states()
    plants = []
    for plant in services.store.list_plants():
        item = plant.to_dict()
        state = states.get(plant.id)
        item["care_state"] = state.to_dict() if state else None
        plants.append(item)
    return jsonify({"success": True, "plants": plants})


@api_bp.route("/plants/<plant_id>/care-state")
def plant_care_state(plant_id: str):
    try:
        state = get_services().care_state(plant_id)
    except PlantNotFound:
        return _not_found()
    return jsonify({"success": True, "care_state": state.to_dict()})


@api_bp.route("/plants/<plant_id>/recommendation")
def plant_recommendation(plant_id: str):
    services = get_services()
    plant = services.store.get_plant(plant_id)
    if plant is None:
        return _not_found()

    weather = services.recommender.current_weather()
    recommendation = services.recommender.recommend(plant, weather, fetch_weather=False)
    fertilizer = services.recommender.recommend_fertilizer(plant)

    return jsonify({
        "success": True,
        "water": recommendation.to_dict(),
        "fertilizer": {
            "amount": fertilizer.amount,
            "unit": fertilizer.unit,
            "frequency_days": fertilizer.frequency_days,
        },
        "weather": weather.to_dict() if weather else None,
        "weather_message": get_weather_care_message(weather),
    })


@api_bp.route("/plants/<plant_id>/care", methods=["POST"])
@limiter.limit(lambda: current_app.config.get("CARE_LOG_RATE_LIMIT", "30 per minute"))
def log_care(plant_id: str):
    """
    Logs a care action for a plant.

    Request JSON: {"care_type": "watering", "amount": 250, "unit": "ml",
                   "note": "...", "timestamp": "2024-05-01T09:00:00Z"}
    Only care_type is required. Returns the created event and the plant's
    new care state.
    """
    payload, error = validate_care_payload(request.get_json(silent=True))
    if error:
        return jsonify({"success": False, "error": error}), 400

    services = get_services()
    try:
        event = services.store.log_care(
            plant_id,
            CareType(payload["care_type"]),
            timestamp=payload["timestamp"] or services.clock(),
            amount=payload["amount"],
            unit=payload["unit"],
            note=payload["note"],
        )
        state = services.care_state(plant_id)
    except PlantNotFound:
        return _not_found()
    except CareStoreError as e:
        return jsonify({"success": False, "error": sanitize_error(e, "database", "Failed to log care")}), 500

    log_info("Care logged", plant_id=plant_id, care_type=event.care_type.value)
    return jsonify({
        "success": True,
        "event": event.to_dict(),
        "care_state": state.to_dict(),
    }), 201


@api_bp.route("/plants/<plant_id>", methods=["DELETE"])
def delete_plant(plant_id: str):
    try:
        get_services().store.delete_plant(plant_id)
    except PlantNotFound:
        return _not_found()
    except CareStoreError as e:
        return jsonify({"success": False, "error": sanitize_error(e, "database", "Failed to delete plant")}), 500
    log_info("Plant deleted", plant_id=plant_id)
    return jsonify({"success": True})


@api_bp.route("/suggestions")
def suggestions():
    surface = normalize_surface(request.args.get("surface"))
    if surface is None:
        log_warning("Unknown suggestion surface requested", surface=request.args.get("surface"))
        return jsonify({"success": False, "error": GENERIC_MESSAGES["validation"]}), 400

    items = get_services().suggestions(surface)
    return jsonify({
        "success": True,
        "surface": surface,
        "suggestions": [s.to_dict() for s in items],
    })


@api_bp.route("/analytics/growth")
def analytics_growth():
    window, error = _window_from_args()
    if error:
        return jsonify({"success": False, "error": error}), 400

    services = get_services()
    metrics = services.analytics.growth_metrics(
        services.store.list_plants(), services.store.list_care_events(), window
    )
    return jsonify({
        "success": True,
        "metrics": [m.to_dict() for m in metrics],
        "insights": services.analytics.growth_insights(metrics),
    })


@api_bp.route("/analytics/environment")
def analytics_environment():
    window, error = _window_from_args()
    if error:
        return jsonify({"success": False, "error": error}), 400

    services = get_services()
    impacts = services.analytics.environmental_impact(
        services.store.list_plants(), services.store.list_care_events(), window
    )
    return jsonify({"success": True, "seasons": [i.to_dict() for i in impacts]})


@api_bp.route("/analytics/locations")
def analytics_locations():
    window, error = _window_from_args()
    if error:
        return jsonify({"success": False, "error": error}), 400

    services = get_services()
    locations = services.analytics.location_analysis(
        services.store.list_plants(), services.store.list_care_events(), window
    )
    return jsonify({"success": True, "locations": [loc.to_dict() for loc in locations]})
