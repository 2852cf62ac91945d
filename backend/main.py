"""
FastAPI Backend for the Floor Tracker
Main application with REST API endpoints
"""

from fastapi import FastAPI, Depends, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from typing import List, Optional
from contextlib import asynccontextmanager
import logging
import threading
import time

from config import API_HOST, API_PORT, LOG_FORMAT, LOG_LEVEL, REQUIRE_SENSOR_BRIDGE
from database import init_db, get_db, SessionLocal, AltitudeReadingDB, MonitoringSessionDB
from models import (
    ActivitySample, AltitudeReading, AltitudeSample, DetectorSnapshot,
    FloorStatistics, MonitoringSession, PedometerSample, TransportationType
)
from floor_detector import FloorDetector
from serial_reader import SerialReader
from utils import now_local, to_local

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger(__name__)


def check_sensors():
    """Fail the start of monitoring when the sensor bridge is required but missing"""
    if REQUIRE_SENSOR_BRIDGE and serial_reader is not None:
        serial_reader.ensure_available()


# Global instances
floor_detector = FloorDetector(sensor_check=check_sensors)
serial_reader: Optional[SerialReader] = None

_session_lock = threading.Lock()
_open_session_id: Optional[int] = None


def store_reading(reading: AltitudeReading):
    """
    Callback function to archive each classified reading.
    Called by the floor detector for each new reading.
    """
    db = SessionLocal()
    try:
        db.add(AltitudeReadingDB(
            timestamp=reading.timestamp,
            altitude=reading.altitude,
            pressure=reading.pressure,
            floor=reading.floor,
            walking_floors=reading.walking_floors,
            steps=reading.steps,
            transport_type=reading.transport_type.value,
            activity=reading.activity
        ))
        db.commit()
    except SQLAlchemyError as e:
        logger.error("Error storing reading: %s", e)
        db.rollback()
    finally:
        db.close()


def track_session(snapshot: DetectorSnapshot):
    """Open a session row when monitoring starts and close it when it stops"""
    global _open_session_id

    with _session_lock:
        if snapshot.is_monitoring == (_open_session_id is not None):
            return

        db = SessionLocal()
        try:
            if snapshot.is_monitoring:
                session = MonitoringSessionDB(started_at=floor_detector.session_start_time)
                db.add(session)
                db.commit()
                _open_session_id = session.id
            else:
                session = db.get(MonitoringSessionDB, _open_session_id)
                if session is not None:
                    session.stopped_at = now_local()
                    db.commit()
                _open_session_id = None
        except SQLAlchemyError as e:
            logger.error("Error tracking session: %s", e)
            db.rollback()
        finally:
            db.close()


floor_detector.set_reading_callback(store_reading)
floor_detector.subscribe(track_session)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    global serial_reader

    # Startup
    logger.info("Starting Floor Tracker Backend...")
    init_db()

    # Initialize serial reader
    serial_reader = SerialReader(floor_detector)

    # Try to connect to serial port
    if serial_reader.connect():
        serial_reader.start_reading()
        logger.info("Serial reading started successfully")
    else:
        logger.warning("Could not connect to serial port. Running without live data.")

    yield

    # Shutdown
    logger.info("Shutting down...")
    floor_detector.stop_monitoring()
    if serial_reader:
        serial_reader.stop_reading()


# Create FastAPI app
app = FastAPI(
    title="Floor Tracker API",
    description="Backend API for floor and transport mode detection from barometer, pedometer and activity data",
    version="1.0.0",
    lifespan=lifespan
)

# Enable CORS for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify exact origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==================== API ENDPOINTS ====================

@app.get("/")
def root():
    """Root endpoint - API status"""
    return {
        "status": "running",
        "name": "Floor Tracker API",
        "version": "1.0.0",
        "monitoring": floor_detector.is_monitoring,
        "serial_connected": serial_reader.is_running if serial_reader else False
    }


@app.get("/api/status", response_model=DetectorSnapshot)
def get_current_status():
    """
    Get current detector state.
    Returns floor, altitude, pressure, transport type, steps, activity and history.
    """
    return floor_detector.snapshot()


@app.get("/api/statistics", response_model=FloorStatistics)
def get_statistics():
    """
    Get statistics for the in-memory history.
    Returns floor extrema, transport counts, monitoring time and averages.
    """
    return floor_detector.get_statistics()


@app.get("/api/history", response_model=List[AltitudeReading])
def get_history():
    """Get the in-memory reading history, oldest first"""
    return floor_detector.snapshot().altitude_history


@app.get("/api/transport-types")
def get_transport_types():
    """List transport types with their display names and descriptions"""
    return [
        {"type": t.value, "name": t.display_name, "description": t.description}
        for t in TransportationType
    ]


# ==================== MONITORING CONTROL ====================

@app.post("/api/monitoring/start")
def start_monitoring():
    """Start a monitoring session"""
    started = floor_detector.start_monitoring()
    return {"success": started, "message": floor_detector.status_message}


@app.post("/api/monitoring/stop")
def stop_monitoring():
    """Stop monitoring. History is kept."""
    floor_detector.stop_monitoring()
    return {"success": True, "message": floor_detector.status_message}


@app.post("/api/monitoring/reset")
def reset_measurement():
    """Stop monitoring and clear all data"""
    floor_detector.reset_measurement()
    return {"message": "All data reset successfully"}


# ==================== SENSOR INGESTION ====================

def _require_monitoring():
    if not floor_detector.is_monitoring:
        raise HTTPException(status_code=409, detail="Monitoring is not active")


@app.post("/api/samples/altitude", response_model=AltitudeReading)
def ingest_altitude(sample: AltitudeSample):
    """Submit an altitude update. Returns the classified reading."""
    _require_monitoring()
    reading = floor_detector.update_altitude(sample)
    if reading is None:
        raise HTTPException(status_code=409, detail="Monitoring is not active")
    return reading


@app.post("/api/samples/pedometer", response_model=DetectorSnapshot)
def ingest_pedometer(sample: PedometerSample):
    """Submit a pedometer update"""
    _require_monitoring()
    floor_detector.update_pedometer(sample)
    return floor_detector.snapshot()


@app.post("/api/samples/activity", response_model=DetectorSnapshot)
def ingest_activity(sample: ActivitySample):
    """Submit a motion activity update"""
    _require_monitoring()
    floor_detector.update_activity(sample)
    return floor_detector.snapshot()


# ==================== EXPORT / IMPORT ====================

@app.get("/api/export")
def export_data():
    """Export the in-memory history as a JSON array"""
    return Response(content=floor_detector.export_data(), media_type="application/json")


@app.post("/api/import")
async def import_data(request: Request):
    """Replace the in-memory history with an exported JSON array"""
    payload = await request.body()
    if not floor_detector.import_data(payload):
        raise HTTPException(status_code=400, detail="Payload is not a valid reading list")
    return {"success": True, "count": len(floor_detector.history)}


# ==================== ARCHIVE ====================

@app.get("/api/readings/recent", response_model=List[AltitudeReading])
def get_recent_readings(limit: int = 50, db: Session = Depends(get_db)):
    """
    Get recent archived readings.
    Returns the most recent readings from the database.
    """
    readings = db.query(AltitudeReadingDB).order_by(
        AltitudeReadingDB.timestamp.desc()
    ).limit(limit).all()

    return [
        AltitudeReading(
            timestamp=to_local(r.timestamp),
            altitude=r.altitude,
            pressure=r.pressure,
            floor=r.floor,
            walking_floors=r.walking_floors,
            steps=r.steps,
            transport_type=r.transport_type,
            activity=r.activity
        )
        for r in reversed(readings)  # Return in chronological order
    ]


@app.get("/api/sessions", response_model=List[MonitoringSession])
def get_sessions(limit: int = 20, db: Session = Depends(get_db)):
    """Get recent monitoring sessions"""
    sessions = db.query(MonitoringSessionDB).order_by(
        MonitoringSessionDB.started_at.desc()
    ).limit(limit).all()

    return [
        MonitoringSession(
            id=s.id,
            started_at=to_local(s.started_at),
            stopped_at=to_local(s.stopped_at) if s.stopped_at else None
        )
        for s in sessions
    ]


# ==================== SERIAL ====================

@app.get("/api/serial/status")
def get_serial_status():
    """Get serial connection status"""
    if serial_reader:
        return {
            "connected": serial_reader.is_running,
            "port": serial_reader.port,
            "baud_rate": serial_reader.baud_rate,
            "frames_received": serial_reader.frames_received
        }
    return {"connected": False, "error": "Serial reader not initialized"}


@app.post("/api/serial/reconnect")
def reconnect_serial():
    """Attempt to reconnect to serial port"""
    if serial_reader:
        serial_reader.stop_reading()
        time.sleep(1)

        if serial_reader.connect():
            serial_reader.start_reading()
            return {"success": True, "message": "Reconnected successfully"}
        else:
            return {"success": False, "message": "Failed to reconnect"}

    return {"success": False, "message": "Serial reader not initialized"}


# ==================== MAIN ====================

if __name__ == "__main__":
    import uvicorn

    print("=" * 50)
    print("Floor Tracker - Backend Server")
    print("=" * 50)

    uvicorn.run(
        "main:app",
        host=API_HOST,
        port=API_PORT,
        reload=True
    )
