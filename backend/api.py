"""
ColdGuard API Endpoints
"""

import os
import sys
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel

# Add core to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.coldguard import food_profiles
from core.coldguard.analysis import FoodAnalyzer, SensorAnalyzer
from core.coldguard.chat import ChatAssistant
from core.coldguard.exceptions import InvalidInputError
from core.coldguard.llm_client import LLMClient
from core.coldguard.sensor_buffer import SensorBuffer, parse_reading
from core.coldguard.settings import Settings, load_settings
from core.coldguard.signal_controller import SignalController
from core.coldguard.state_store import StateStore, create_state_store

VERSION = "0.1.0"

# Readings sent to the sensor analysis when the client posts none
ANALYZE_WINDOW = 20

router = APIRouter()

# Services (replaced by init_services)
settings: Settings = Settings()
state_store: Optional[StateStore] = None
controller: Optional[SignalController] = None
sensor_buffer: Optional[SensorBuffer] = None
llm: Optional[LLMClient] = None
food_analyzer: Optional[FoodAnalyzer] = None
sensor_analyzer: Optional[SensorAnalyzer] = None
chat_assistant: Optional[ChatAssistant] = None


def init_services(config: Settings):
    """Build the process-wide services from settings."""
    global settings, state_store, controller, sensor_buffer, llm
    global food_analyzer, sensor_analyzer, chat_assistant

    settings = config
    state_store = create_state_store(config)
    controller = SignalController(state_store)
    sensor_buffer = SensorBuffer(max_records=config.sensor_buffer_size)
    llm = LLMClient(config.openai_api_key, model=config.llm_model, timeout=config.llm_timeout_seconds)
    food_analyzer = FoodAnalyzer(llm)
    sensor_analyzer = SensorAnalyzer(llm)
    chat_assistant = ChatAssistant(controller, sensor_buffer, llm, config)

    logger.info(
        f"Services ready (storage: {state_store.mode}, "
        f"llm: {'enabled' if llm.enabled else 'disabled'}, buffer: {config.sensor_buffer_size})"
    )


# Initialize services on module import
init_services(load_settings())


def client_error(e: InvalidInputError) -> JSONResponse:
    logger.info(f"Rejected request: {e}")
    return JSONResponse(status_code=400, content={"error": str(e)})


def _first(*values: Any) -> Any:
    return next((v for v in values if v is not None), None)


def _posted_reading(item: Any):
    # Keep the client timestamp so the analysis sees the real sampling times
    timestamp = item.get("timestamp") if isinstance(item, dict) else None
    return parse_reading(item, timestamp=timestamp if isinstance(timestamp, str) else None)


class SelectRequest(BaseModel):
    """Request body for selecting the monitored food."""
    category: Any = None
    foodType: Any = None  # Legacy dashboard key
    temperature: Any = None


class FoodMonitorRequest(BaseModel):
    """Request body for a storage condition analysis."""
    category: Any = None
    foodType: Any = None
    temperature: Any = None
    currentTemp: Any = None
    humidity: Any = None
    currentHumidity: Any = None
    duration: Optional[str] = None


class AnalyzeRequest(BaseModel):
    """Request body for a sensor data analysis."""
    sensorData: Optional[list[Any]] = None


class ChatRequest(BaseModel):
    """Request body for a chat message."""
    message: Any = None


@router.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": "ColdGuard",
        "version": VERSION,
        "storage": state_store.mode,
        "llm_enabled": llm.enabled,
    }


@router.get("/api/foods")
async def get_foods():
    """Get all supported food profiles."""
    return {
        "foods": [
            {**profile.to_dict(), "ranges": profile.ranges()}
            for profile in food_profiles.FOOD_PROFILES.values()
        ]
    }


@router.post("/api/led-control")
def select_food(request: SelectRequest):
    """Classify a temperature for a food category and update the signal."""
    category = _first(request.category, request.foodType)
    try:
        state = controller.select(category, request.temperature)
    except InvalidInputError as e:
        return client_error(e)

    return {
        "success": True,
        "message": f"Signal updated for {state.category}: {state.status.value}",
        "state": state.to_dict(),
        "ranges": SignalController.profile_ranges(state.category),
        **state.led_flags(),
        "status": state.status.value,
        "category": state.category,
        "temperature": state.temperature,
        "lastUpdate": state.last_update.isoformat(),
    }


@router.get("/api/led-control")
def get_signal():
    """Get the current signal for the dashboard."""
    state = controller.current()
    return {
        "success": True,
        "state": state.to_dict(),
        **state.led_flags(),
        "status": state.status.value,
        "category": state.category,
        "temperature": state.temperature,
        "lastUpdate": state.last_update.isoformat(),
    }


@router.put("/api/led-control")
@router.get("/api/led-control/device")
def get_device_signal():
    """Flat signal payload polled by the board. Always answers 200."""
    return controller.current_for_device()


@router.post("/api/sensor-data")
async def post_sensor_data(request: Request):
    """Store a reading pushed by the sensor board."""
    try:
        payload = await request.json()
    except ValueError:
        payload = None

    try:
        reading = sensor_buffer.ingest(payload)
    except InvalidInputError as e:
        return client_error(e)

    return {
        "success": True,
        "message": "Reading stored",
        "data": reading.to_dict(),
        "totalRecords": sensor_buffer.count(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/api/sensor-data")
async def get_sensor_data(limit: Optional[int] = Query(None, ge=1)):
    """Get buffered readings, newest first."""
    return [reading.to_dict() for reading in sensor_buffer.recent(limit)]


@router.get("/api/sensor-data/stats")
async def get_sensor_stats():
    """Get a summary of the buffered readings."""
    return sensor_buffer.stats()


@router.post("/api/food-monitor")
def food_monitor(request: FoodMonitorRequest):
    """Assess storage conditions for a food category."""
    try:
        return food_analyzer.analyze(
            _first(request.category, request.foodType),
            _first(request.temperature, request.currentTemp),
            humidity=_first(request.humidity, request.currentHumidity),
            duration=request.duration,
        )
    except InvalidInputError as e:
        return client_error(e)


@router.post("/api/analyze")
def analyze_sensor_data(request: Optional[AnalyzeRequest] = None):
    """Summarize sensor readings (posted ones, or the newest buffered ones)."""
    try:
        if request and request.sensorData:
            readings = [_posted_reading(item) for item in request.sensorData]
        else:
            readings = sensor_buffer.recent(ANALYZE_WINDOW)
        return {"analysis": sensor_analyzer.analyze(readings)}
    except InvalidInputError as e:
        return client_error(e)


@router.post("/api/chat")
def chat(request: ChatRequest):
    """Answer a chat message about the storage unit."""
    try:
        return chat_assistant.respond(request.message)
    except InvalidInputError as e:
        return client_error(e)
