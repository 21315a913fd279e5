from contextlib import asynccontextmanager
import logging

from resume_scoring.api.deps import build_session_registry
from resume_scoring.core.config.scoring import get_keyword_vocabulary
from resume_scoring.core.config import settings
from resume_scoring.storage import get_resume_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    vocabulary = get_keyword_vocabulary(settings.keyword_profile)
    logger.info("keyword_profile_loaded profile=%s terms=%s", settings.keyword_profile, len(vocabulary))

    store = get_resume_store()
    store.init()

    app.state.sessions = build_session_registry()
    yield
    sessions = app.state.sessions
    app.state.sessions = None
    await sessions.aclose()
    store.close()
