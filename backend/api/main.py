from contextlib import asynccontextmanager
from fastapi import FastAPI, Depends, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session
from typing import Dict, List, Optional
from datetime import datetime, timezone
from functools import partial
import asyncio
import logging
import uuid

from api.database import get_db, init_db, engine, SessionLocal
from api.config import settings
from api.logging_config import setup_logging, read_log_file
from api import repository
from scrapers.manager import ScraperManager, SCRAPER_REGISTRY, ALL_SITES
from scrapers.utils.output import save_results
from scrapers.utils.normalizers import coerce_datetime
from pydantic import BaseModel

setup_logging()
logger = logging.getLogger(__name__)


# Filter to suppress noisy polling endpoint access logs
class PollingEndpointFilter(logging.Filter):
    # Dashboard polls these while a parse job runs
    SUPPRESSED_ENDPOINTS = ['/api/logs', '/api/parse/']

    def filter(self, record):
        msg = record.getMessage()
        return not any(endpoint in msg for endpoint in self.SUPPRESSED_ENDPOINTS)


logging.getLogger("uvicorn.access").addFilter(PollingEndpointFilter())

API_VERSION = "1.0.0"

# Background parse jobs by id
parse_jobs: Dict[str, Dict] = {}


class ParseRequest(BaseModel):
    source: str = ALL_SITES


class ContentUpdate(BaseModel):
    edited_content: str


class NewsItemResponse(BaseModel):
    id: int
    source: str
    url: str
    title: str
    description: str
    published_at: datetime
    fetched_at: datetime
    category: Optional[str]
    author: Optional[str]
    content_type: Optional[str]
    full_content: Optional[str]
    preview_content: Optional[str]
    edited_content: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


async def cleanup_resources():
    """Cancel running parse jobs and close database connections."""
    logger.info("Cleaning up resources...")

    running = [job['task'] for job in parse_jobs.values() if not job['task'].done()]
    if running:
        logger.info(f"Cancelling {len(running)} running parse job(s)...")
        for task in running:
            task.cancel()
        await asyncio.gather(*running, return_exceptions=True)

    saving = [job['persist'] for job in parse_jobs.values() if 'persist' in job and not job['persist'].done()]
    if saving:
        logger.info(f"Waiting for {len(saving)} parse job(s) to finish saving...")
        await asyncio.gather(*saving, return_exceptions=True)

    try:
        await asyncio.wait_for(
            asyncio.get_event_loop().run_in_executor(None, lambda: engine.dispose(close=True)),
            timeout=2.0
        )
        logger.info("Database connections closed")
    except asyncio.TimeoutError:
        logger.warning("Database cleanup timed out")
    logger.info("Resource cleanup complete")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info("=" * 60)
    logger.info("Crypto News API Starting Up")
    logger.info("=" * 60)
    logger.info(f"Log file: {settings.log_file}")
    logger.info(f"Database: {settings.database_url}")
    init_db()
    logger.info("Database initialized successfully")

    yield  # Application runs here

    logger.info("Crypto News API Shutting Down")
    try:
        await asyncio.wait_for(cleanup_resources(), timeout=10.0)
    except asyncio.TimeoutError:
        logger.warning("Shutdown cleanup timed out, forcing exit")
    logger.info("Shutdown complete")


app = FastAPI(
    title="Crypto News API",
    version=API_VERSION,
    lifespan=lifespan
)

# Note: allow_credentials must be False when allow_origins is ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {"message": "Crypto News API", "version": API_VERSION}


@app.get("/api/status")
async def get_status():
    return {"status": "online"}


@app.get("/api/news", response_model=List[NewsItemResponse])
async def get_news(
    limit: int = Query(100, ge=1, le=1000),
    source: Optional[str] = Query(None, description="Only items from this site"),
    db: Session = Depends(get_db)
):
    """Latest news items, newest first"""
    if source:
        return repository.get_items_by_source(db, source, limit)
    return repository.get_recent_items(db, limit)


@app.get("/api/news/range", response_model=List[NewsItemResponse])
async def get_news_in_range(
    start: datetime,
    end: datetime,
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db)
):
    """News items published between start and end"""
    start, end = coerce_datetime(start), coerce_datetime(end)
    if start > end:
        raise HTTPException(status_code=400, detail="start must not be after end")
    return repository.get_items_by_date_range(db, start, end, limit)


@app.patch("/api/news/{item_id}", response_model=NewsItemResponse)
async def update_news_content(item_id: int, update: ContentUpdate, db: Session = Depends(get_db)):
    """Save edited content for a news item"""
    item = repository.update_item_content(db, item_id, update.edited_content)
    if item is None:
        raise HTTPException(status_code=404, detail="News item not found")
    return item


@app.get("/api/scrapers")
async def list_scrapers():
    """List all available scrapers and their implementation status"""
    manager = ScraperManager()
    return {
        "scrapers": manager.list_scrapers(),
        "implemented": manager.get_implemented_scrapers()
    }


def _save_job_results(job_id: str, records: list) -> int:
    """Store a batch and write its output files. Runs in a worker thread."""
    db = SessionLocal()
    try:
        inserted = repository.save_items(db, records)
    finally:
        db.close()

    if settings.save_output:
        by_source: Dict[str, list] = {}
        for record in records:
            by_source.setdefault(record.source, []).append(record)
        for source, source_records in by_source.items():
            try:
                save_results(source_records, source, settings.output_dir)
            except OSError as e:
                logger.warning(f"Parse job {job_id}: could not write output for {source}: {e}")
    return inserted


async def _persist_parse_job(job_id: str, records: list):
    """Persist a finished batch off the event loop and record the outcome."""
    job = parse_jobs[job_id]
    loop = asyncio.get_running_loop()
    try:
        inserted = await loop.run_in_executor(None, _save_job_results, job_id, records)
    except Exception as e:
        job['status'] = 'failed'
        job['error'] = f"Saving results failed: {e}"
        logger.exception(f"Parse job {job_id}: saving results failed")
        return

    job['inserted'] = inserted
    job['total'] = len(records)
    job['status'] = 'completed'
    logger.info(f"Parse job {job_id} finished: {len(records)} records, {inserted} new")


def _finish_parse_job(job_id: str, task: asyncio.Task):
    """Record the batch outcome and hand successful results to persistence."""
    job = parse_jobs[job_id]
    job['completed_at'] = datetime.now(timezone.utc).isoformat()
    job['summary'] = job['manager'].get_results_summary()

    if task.cancelled():
        job['status'] = 'cancelled'
        logger.warning(f"Parse job {job_id} was cancelled")
        return
    error = task.exception()
    if error is not None:
        job['status'] = 'failed'
        job['error'] = str(error)
        logger.error(f"Parse job {job_id} failed: {error}")
        return

    job['status'] = 'saving'
    job['persist'] = asyncio.ensure_future(_persist_parse_job(job_id, task.result()))


@app.post("/api/parse")
async def start_parse(request: ParseRequest):
    """Start parsing in the background and respond immediately"""
    source = request.source.strip().lower()
    if source != ALL_SITES and source not in SCRAPER_REGISTRY:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid source: {request.source}. Available: {[ALL_SITES] + list(SCRAPER_REGISTRY.keys())}"
        )

    job_id = uuid.uuid4().hex
    manager = ScraperManager()
    task = manager.spawn_batch(source)
    parse_jobs[job_id] = {
        'job_id': job_id,
        'source': source,
        'status': 'running',
        'started_at': datetime.now(timezone.utc).isoformat(),
        'manager': manager,
        'task': task,
    }
    task.add_done_callback(partial(_finish_parse_job, job_id))
    logger.info(f"Parse job {job_id} started for {source}")
    return {"message": f"Parsing started for {source}", "job_id": job_id}


@app.get("/api/parse/{job_id}")
async def get_parse_job(job_id: str):
    """State of a background parse job"""
    job = parse_jobs.get(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Parse job not found")
    result = {k: v for k, v in job.items() if k not in ('manager', 'task', 'persist')}
    if job['status'] == 'running':
        result['summary'] = job['manager'].get_results_summary()
    return result


@app.get("/api/logs")
async def get_logs(limit: int = Query(100, ge=1, le=1000, description="Number of lines to retrieve")):
    """Get backend logs"""
    return {"logs": read_log_file(limit)}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        access_log=True,
        log_config=None,  # Keep the handlers installed by setup_logging
        timeout_keep_alive=5,
        timeout_graceful_shutdown=5.0,
    )
