"""Session management for in-memory storage."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from cuid2 import cuid_wrapper

from advisor.models.session import Session
from advisor.services.conversation import ConversationEngine, create_conversation_engine
from advisor.utils.logging import get_logger

logger = get_logger(__name__)

cuid = cuid_wrapper()

EngineFactory = Callable[[], ConversationEngine]


class InMemorySessionManager:
    """In-memory session manager; every session owns one conversation engine."""

    def __init__(self, engine_factory: EngineFactory | None = None, session_timeout_minutes: int = 60):
        """Initialize session manager.

        Args:
            engine_factory: Builds the engine for a new session
            session_timeout_minutes: Minutes of inactivity before a session expires
        """
        self.engine_factory = engine_factory or create_conversation_engine
        self.sessions: dict[str, Session] = {}
        self.session_timeout = timedelta(minutes=session_timeout_minutes)

    def create_session(self) -> Session:
        """Create a session with a primed conversation engine."""
        self._cleanup_expired_sessions()

        engine = self.engine_factory()
        engine.prime()
        session = Session(session_id=self._generate_session_id(), engine=engine)
        self.sessions[session.session_id] = session
        logger.info(f"Created session {session.session_id}")
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get existing session by ID.

        Args:
            session_id: Session identifier

        Returns:
            Session if found and not expired, None otherwise
        """
        self._cleanup_expired_sessions()

        session = self.sessions.get(session_id)
        if session:
            session.update_activity()
        return session

    def delete_session(self, session_id: str) -> bool:
        """Delete a session.

        Returns:
            True if session was deleted, False if not found
        """
        if session_id in self.sessions:
            del self.sessions[session_id]
            return True
        return False

    def _generate_session_id(self) -> str:
        """Generate a new CUID-based session ID."""
        return cuid()

    def _cleanup_expired_sessions(self) -> None:
        """Remove expired sessions from memory."""
        current_time = datetime.now(UTC)
        expired_sessions = [
            session_id
            for session_id, session in self.sessions.items()
            if current_time - session.last_activity > self.session_timeout
        ]

        for session_id in expired_sessions:
            logger.info(f"Expiring idle session {session_id}")
            del self.sessions[session_id]

    def get_session_count(self) -> int:
        """Get current number of active sessions."""
        self._cleanup_expired_sessions()
        return len(self.sessions)


session_manager = InMemorySessionManager()


def get_session_manager() -> InMemorySessionManager:
    """FastAPI dependency for the process-wide session manager."""
    return session_manager
