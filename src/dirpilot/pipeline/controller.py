"""Mutation pipeline controller.

Created: 2026-10-11

Orchestrates one project session:

    open directory -> snapshot -> Ready
    each turn: stream reply -> extract proposal -> attach to that AI message
    accept -> apply -> re-snapshot -> success/failure notice
    reject -> rejection notice

Each AI message holds at most one proposal and proposals on different
messages are independent; resolving one never touches another. Whatever the
outcome, the proposal is cleared from its message and one system notice is
appended to the conversation.

Snapshots are tagged with the root session they were started for; a result
that arrives after the root changed is dropped. Streams are tagged with the id
of the AI message they may write to; a cancelled stream stops writing.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from dirpilot.audit import AuditLogger, AuditSeverity
from dirpilot.config import Settings
from dirpilot.conversation.models import ChatMessage, ChatSession, MessageAuthor
from dirpilot.conversation.store import ConversationStoreProtocol, InMemoryConversationStore
from dirpilot.llm.generation import TextGenerator
from dirpilot.proposals.executor import Applied, MutationExecutor
from dirpilot.proposals.extractor import extract
from dirpilot.proposals.models import ChangeType, Proposal, ProposalStatus
from dirpilot.workspace.capabilities import CapabilityStore, RootChange
from dirpilot.workspace.errors import (
    Failure,
    FailureKind,
    HostError,
    HostFileTooLargeError,
    StaleCapabilityError,
)
from dirpilot.workspace.host import DirectoryPicker, HostProtocol, LocalHost
from dirpilot.workspace.resolver import PathResolver, strip_root_prefix
from dirpilot.workspace.snapshot import DirectoryNode, TreeSnapshotter, serialize_tree

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = """**Welcome to dirpilot!**

1. Open a project directory to share its structure with the assistant.
2. Select a file to add its content to the context of your next question.
3. Ask about your code. Proposed file changes are only written after you accept them."""


class PipelineState(str, Enum):
    IDLE = "idle"
    SNAPSHOTTING = "snapshotting"
    READY = "ready"
    PROPOSAL_PENDING = "proposal_pending"
    APPLYING = "applying"


class MessageNotFoundError(LookupError):
    """No message with the given id in the current session."""


class ProposalNotFoundError(LookupError):
    """No pending proposal is attached to the given message."""


@dataclass(frozen=True)
class ActiveFileContext:
    name: str
    path: str
    content: str

    def as_prompt_pair(self) -> tuple[str, str]:
        return self.name, self.content


@dataclass(frozen=True)
class TurnUpdate:
    """One event of a streamed turn: chunk, proposal, done, cancelled or error."""

    type: str
    message_id: str
    content: str = ""
    proposal: Proposal | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"message_id": self.message_id, "content": self.content}
        if self.proposal is not None:
            data["proposal"] = self.proposal.to_dict()
        return data


class MutationPipelineController:
    """Owns the tree, the active file and the conversation for one project."""

    def __init__(
        self,
        store: CapabilityStore,
        generator: TextGenerator | None = None,
        conversations: ConversationStoreProtocol | None = None,
        *,
        excluded_names: Iterable[str] = (),
        max_active_file_bytes: int = 1024 * 1024,
        audit: AuditLogger | None = None,
    ):
        self.store = store
        self.resolver = PathResolver(store)
        self.snapshotter = TreeSnapshotter(store, excluded_names)
        self.executor = MutationExecutor(store, self.resolver)
        self.generator = generator
        self.conversations = conversations or InMemoryConversationStore()
        self.audit = audit
        self.max_active_file_bytes = max_active_file_bytes

        self.tree: DirectoryNode | None = None
        self.active_file: ActiveFileContext | None = None
        self.session: ChatSession | None = None

        self._unsupported = not store.host_supported
        self._unsupported_reported = False
        self._snapshots_in_flight = 0
        self._applying = 0
        self._streams: dict[str, asyncio.Event] = {}
        self._current_stream: str | None = None

        store.subscribe(self._on_root_change)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        host: HostProtocol | None = None,
        generator: TextGenerator | None = None,
        conversations: ConversationStoreProtocol | None = None,
        picker: DirectoryPicker | None = None,
        audit: AuditLogger | None = None,
    ) -> MutationPipelineController:
        host = host or LocalHost(jail=settings.file_jail_path, picker=picker)
        return cls(
            CapabilityStore(host),
            generator,
            conversations,
            excluded_names=settings.all_excluded_names,
            max_active_file_bytes=settings.max_active_file_bytes,
            audit=audit,
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> PipelineState:
        if self._applying:
            return PipelineState.APPLYING
        if self._snapshots_in_flight:
            return PipelineState.SNAPSHOTTING
        if self.tree is None:
            return PipelineState.IDLE
        if self.pending_proposals():
            return PipelineState.PROPOSAL_PENDING
        return PipelineState.READY

    @property
    def directory_access_available(self) -> bool:
        return not self._unsupported

    @property
    def root_name(self) -> str | None:
        root = self.store.current_root()
        return root.name if root else None

    @property
    def write_denied(self) -> bool:
        root = self.store.current_root()
        return bool(root and root.write_denied)

    def tree_text(self) -> str | None:
        return serialize_tree(self.tree) if self.tree is not None else None

    def pending_proposals(self) -> list[Proposal]:
        if self.session is None:
            return []
        return [
            m.proposal
            for m in self.session.messages
            if m.proposal is not None and m.proposal.is_open
        ]

    def _on_root_change(self, change: RootChange) -> None:
        self.tree = None
        self.active_file = None
        logger.debug("Root changed (session %d); tree and active file reset", change.session)

    # ------------------------------------------------------------------
    # Conversation
    # ------------------------------------------------------------------

    async def start(self) -> ChatSession:
        """Load the current session from storage, or start a new one."""
        session = await self._ensure_session()
        if self._unsupported and not self._unsupported_reported:
            await self._notice_unsupported()
        return session

    async def _ensure_session(self) -> ChatSession:
        if self.session is not None:
            return self.session
        current_id = await self.conversations.get_current_session_id()
        if current_id:
            self.session = await self.conversations.get_session(current_id)
        if self.session is None:
            await self.new_session()
        return self.session

    async def _persist(self) -> None:
        if self.session is None:
            return
        self.session.touch()
        await self.conversations.save_session(self.session)

    async def append_message(self, author: MessageAuthor, content: str) -> ChatMessage:
        session = await self._ensure_session()
        message = ChatMessage.create(author, content)
        session.messages.append(message)
        await self._persist()
        return message

    async def notice(self, content: str) -> ChatMessage:
        return await self.append_message(MessageAuthor.SYSTEM, content)

    async def new_session(self, name: str | None = None) -> ChatSession:
        self.cancel_turn()
        self.session = ChatSession.create(name, project_path=self.root_name)
        self.session.messages.append(ChatMessage.create(MessageAuthor.SYSTEM, WELCOME_MESSAGE))
        await self.conversations.save_session(self.session)
        await self.conversations.set_current_session_id(self.session.id)
        return self.session

    async def load_session(self, session_id: str) -> ChatSession | None:
        session = await self.conversations.get_session(session_id)
        if session is None:
            return None
        self.cancel_turn()
        self.session = session
        await self.conversations.set_current_session_id(session.id)
        return session

    async def delete_session(self, session_id: str) -> bool:
        deleted = await self.conversations.delete_session(session_id)
        if deleted and self.session is not None and self.session.id == session_id:
            self.session = None
            await self.new_session()
        return deleted

    async def clear_session(self) -> ChatSession:
        session = await self._ensure_session()
        self.cancel_turn()
        session.messages.clear()
        await self._persist()
        return session

    async def search_messages(self, query: str) -> list[ChatMessage]:
        """Case-insensitive search over message content and proposal paths."""
        term = query.strip().lower()
        if not term:
            return []
        session = await self._ensure_session()
        return [
            m
            for m in session.messages
            if term in m.content.lower()
            or (m.proposal is not None and term in m.proposal.instruction.file_path.lower())
        ]

    def _message(self, message_id: str) -> ChatMessage:
        message = self.session.get_message(message_id) if self.session else None
        if message is None:
            raise MessageNotFoundError(message_id)
        return message

    async def edit_message(self, message_id: str, content: str) -> ChatMessage:
        """Replace a message's text. A reply still streaming into it is stopped."""
        await self._ensure_session()
        message = self._message(message_id)
        self.cancel_turn(message_id)
        message.content = content
        message.is_edited = True
        await self._persist()
        return message

    async def delete_message(self, message_id: str) -> ChatMessage:
        """Remove a message from the log, along with any proposal it carries."""
        session = await self._ensure_session()
        message = self._message(message_id)
        self.cancel_turn(message_id)
        session.messages.remove(message)
        if message.proposal is not None and message.proposal.is_open:
            logger.info("Dropped unresolved proposal for %s", message.proposal.instruction.file_path)
        await self._persist()
        return message

    async def toggle_favorite(self, message_id: str) -> ChatMessage:
        await self._ensure_session()
        message = self._message(message_id)
        message.is_favorite = not message.is_favorite
        await self._persist()
        return message

    # ------------------------------------------------------------------
    # Directory and snapshot
    # ------------------------------------------------------------------

    async def _notice_unsupported(self) -> None:
        self._unsupported_reported = True
        await self.notice("This environment cannot grant access to local directories.")

    async def open_directory(self, picker: DirectoryPicker | None = None) -> DirectoryNode | Failure:
        """Ask for a new root and snapshot it.

        A dismissed picker returns ``ABORTED`` and leaves the current root,
        tree and conversation untouched.
        """
        if self._unsupported:
            if not self._unsupported_reported:
                await self._notice_unsupported()
            return Failure(FailureKind.UNSUPPORTED_HOST, "Directory access is not available")

        granted = await self.store.request_root(picker)
        if isinstance(granted, Failure):
            if granted.kind == FailureKind.UNSUPPORTED_HOST:
                self._unsupported = True
                await self._notice_unsupported()
            elif not granted.is_silent:
                await self.notice(f"Could not open directory: {granted.message}")
            return granted

        if self.session is not None:
            self.session.project_path = granted.name
        if granted.write_denied:
            await self.notice(
                f"Write access to **{granted.name}** was denied. "
                "You can browse and ask questions, but accepted changes will fail."
            )
        return await self.refresh()

    async def refresh(self) -> DirectoryNode | Failure:
        """Re-read the whole tree from the current root."""
        root = self.store.current_root()
        if root is None:
            return Failure(FailureKind.NO_ROOT, "No directory is open")

        generation = self.store.session
        self._snapshots_in_flight += 1
        try:
            result = await self.snapshotter.snapshot(root)
        finally:
            self._snapshots_in_flight -= 1

        if generation != self.store.session:
            logger.debug("Dropping snapshot of %s from stale session %d", root.name, generation)
            return Failure(FailureKind.STALE_CAPABILITY, "The directory changed during the snapshot")

        if isinstance(result, Failure):
            if result.kind != FailureKind.STALE_CAPABILITY:
                await self.notice(f"Could not read the project tree: {result.message}")
            return result

        self.tree = result
        return result

    # ------------------------------------------------------------------
    # Active file
    # ------------------------------------------------------------------

    async def select_file(self, path: str) -> ActiveFileContext | Failure:
        """Make one file the active context, replacing any previous one."""
        root = self.store.current_root()
        if root is None:
            return Failure(FailureKind.NO_ROOT, "No directory is open", path=path)

        relative = strip_root_prefix(path, root.name)
        target = await self.resolver.resolve(root, relative)
        if not isinstance(target, Failure) and not target.is_file:
            target = Failure(FailureKind.NOT_FOUND, f"{path} is a directory", path=path)

        if isinstance(target, Failure):
            outcome = target
        else:
            try:
                content = await self.store.read_text(target, max_bytes=self.max_active_file_bytes)
                outcome = ActiveFileContext(name=target.name, path=relative, content=content)
            except HostFileTooLargeError as e:
                outcome = Failure(FailureKind.FILE_TOO_LARGE, str(e), path=path)
            except StaleCapabilityError as e:
                outcome = Failure(FailureKind.STALE_CAPABILITY, str(e), path=path)
            except HostError as e:
                outcome = Failure(FailureKind.READ_FAILED, str(e), path=path)

        if isinstance(outcome, Failure):
            self.active_file = None
            await self.notice(f"Could not read {path}: {outcome.message}")
            return outcome

        self.active_file = outcome
        await self.notice(
            f"Active file is now **{outcome.name}**. Its content is included with your next question."
        )
        return outcome

    def clear_active_file(self) -> None:
        self.active_file = None

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    def cancel_turn(self, message_id: str | None = None) -> bool:
        """Stop a streaming reply (the current one by default)."""
        target = message_id or self._current_stream
        event = self._streams.get(target) if target else None
        if event is None:
            return False
        event.set()
        return True

    async def send(self, prompt: str) -> AsyncIterator[TurnUpdate]:
        """Run one turn, yielding updates as the reply streams in.

        Starting a turn cancels any reply still streaming.
        """
        prompt = prompt.strip()
        if not prompt:
            return

        self.cancel_turn()
        await self.append_message(MessageAuthor.USER, prompt)
        reply = await self.append_message(MessageAuthor.AI, "")
        cancelled = asyncio.Event()
        self._streams[reply.id] = cancelled
        self._current_stream = reply.id

        try:
            if self.generator is None:
                reply.content = "Sorry, no text generation service is configured."
                await self._persist()
                yield TurnUpdate("error", reply.id, reply.content)
                return

            active = self.active_file.as_prompt_pair() if self.active_file else None
            fragments: list[str] = []
            stream = self.generator.stream(prompt, self.tree_text(), active)
            try:
                async for fragment in stream:
                    if cancelled.is_set():
                        break
                    fragments.append(fragment)
                    reply.content = "".join(fragments)
                    yield TurnUpdate("chunk", reply.id, fragment)
            except Exception as e:
                if cancelled.is_set():
                    return
                logger.warning("Stream for %s failed: %s", reply.id, e)
                reply.content = f"Sorry, an error occurred: {e}"
                await self._persist()
                yield TurnUpdate("error", reply.id, reply.content)
                return
            finally:
                aclose = getattr(stream, "aclose", None)
                if aclose is not None:
                    await aclose()

            if cancelled.is_set():
                await self._persist()
                yield TurnUpdate("cancelled", reply.id, reply.content)
                return

            extraction = extract("".join(fragments))
            reply.content = extraction.visible_text
            if extraction.instruction is not None:
                reply.proposal = Proposal(message_id=reply.id, instruction=extraction.instruction)
            await self._persist()

            if reply.proposal is not None:
                yield TurnUpdate("proposal", reply.id, reply.content, proposal=reply.proposal)
            yield TurnUpdate("done", reply.id, reply.content)
        finally:
            self._streams.pop(reply.id, None)
            if self._current_stream == reply.id:
                self._current_stream = None

    async def run_turn(self, prompt: str) -> ChatMessage | None:
        """Run a turn to completion and return the AI message."""
        message_id = None
        async for update in self.send(prompt):
            message_id = update.message_id
        if message_id is None or self.session is None:
            return None
        return self.session.get_message(message_id)

    # ------------------------------------------------------------------
    # Proposals
    # ------------------------------------------------------------------

    def _pending(self, message_id: str) -> tuple[ChatMessage, Proposal]:
        message = self.session.get_message(message_id) if self.session else None
        if message is None or message.proposal is None:
            raise ProposalNotFoundError(message_id)
        if message.proposal.status != ProposalStatus.PENDING:
            raise ProposalNotFoundError(message_id)
        return message, message.proposal

    async def accept(self, message_id: str) -> Applied | Failure:
        """Apply the proposal attached to ``message_id``, then re-snapshot."""
        message, proposal = self._pending(message_id)
        instruction = proposal.instruction
        proposal.status = ProposalStatus.APPLYING

        self._applying += 1
        try:
            root = self.store.current_root()
            if root is None:
                result: Applied | Failure = Failure(
                    FailureKind.NO_ROOT, "No directory is open", path=instruction.file_path
                )
            else:
                result = await self.executor.apply(root, instruction)
        except asyncio.CancelledError:
            proposal.status = ProposalStatus.PENDING
            raise
        except Exception as e:
            logger.exception("Applying %s failed", instruction.file_path)
            result = Failure(FailureKind.WRITE_FAILED, str(e) or type(e).__name__, path=instruction.file_path)
        finally:
            self._applying -= 1

        message.proposal = None
        if isinstance(result, Applied):
            proposal.status = ProposalStatus.APPLIED
            verb = "Created" if result.change == ChangeType.CREATE else "Updated"
            self._audit("proposal_applied", result.path, "success", AuditSeverity.WARNING, instruction.type)
            await self.notice(f"{verb} `{result.path}`.")
            await self.refresh()
        else:
            proposal.status = ProposalStatus.FAILED
            self._audit(
                "proposal_failed",
                instruction.file_path,
                "error",
                AuditSeverity.ALERT,
                instruction.type,
                reason=result.kind.value,
            )
            await self.notice(f"Could not apply the change to `{instruction.file_path}`: {result.message}")
        return result

    async def reject(self, message_id: str) -> Proposal:
        """Discard the proposal attached to ``message_id``. Nothing is written."""
        message, proposal = self._pending(message_id)
        proposal.status = ProposalStatus.REJECTED
        message.proposal = None
        self._audit(
            "proposal_rejected",
            proposal.instruction.file_path,
            "rejected",
            AuditSeverity.INFO,
            proposal.instruction.type,
        )
        await self.notice(f"Change to `{proposal.instruction.file_path}` rejected.")
        return proposal

    def _audit(
        self,
        action: str,
        path: str,
        status: str,
        severity: AuditSeverity,
        change: str,
        **context: Any,
    ) -> None:
        if self.audit is None:
            return
        self.audit.log_proposal(
            action, path, status, severity=severity, change=change, root=self.root_name, **context
        )
