"""
Flipbook - Paginator
Session controller: renders pages into one chat message and lets a single
viewer turn them with control symbols.

Lifecycle:
    IDLE --start()--> RUNNING --timeout / stop / trash / destroy()--> ENDED

Inbound control events are handled one at a time in arrival order. Each
event is checked against the viewer and the enabled controls, applied to
the navigation state, and the message is only edited when the page
actually changed.

Usage:
    paginator = Paginator(pages=["one", "two", "three"], viewer_id=user_id)
    paginator.on("end", lambda reason: print(reason))
    await paginator.start(transport, chat_id)
    reason = await paginator.wait()
"""

import asyncio
from collections import defaultdict
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

import config
from core.logger import log_debug, log_error, log_session, log_warning
from pagination.controls import (
    ControlAction,
    ControlMapping,
    ControlSymbolMap,
    InfoOptions,
    JumpOptions,
)
from pagination.errors import (
    ConfigurationError,
    ConfigurationErrorKind,
    EndReason,
    TransportError,
)
from pagination.navigation import NavigationState, parse_page_number
from pagination.pages import Document, Page, PageStore
from pagination.template import DocumentTemplate, TemplateMerger
from pagination.transport import (
    ChannelHandle,
    ControlEvent,
    ControlEventStream,
    MessageHandle,
    PaginatorTransport,
    TextReply,
)


class SessionState(Enum):
    """Lifecycle states of a paginator."""
    IDLE = "idle"          # Constructed, not started
    RUNNING = "running"    # Displaying pages and listening for controls
    ENDED = "ended"        # Terminal


LIFECYCLE_EVENTS = ("end", "error")

Listener = Callable[..., None]


class Paginator:
    """
    Pages shown in one message, navigated by one viewer.

    Configuration can be passed to the constructor or through the chaining
    setters before start(). Setters are ignored while the session runs.

    Lifecycle notifications:
        "end"   - listener(reason: str), emitted exactly once
        "error" - listener(error: Exception), for rejected configuration
                  and failures after start() returned
    """

    def __init__(
        self,
        pages: Optional[Iterable[Any]] = None,
        template: Optional[Union[DocumentTemplate, Mapping[str, Any]]] = None,
        symbols: Optional[Union[ControlSymbolMap, Mapping[str, Any]]] = None,
        viewer_id: Any = None,
        timeout: Optional[float] = None,
        stoppable: Optional[bool] = None,
        circular: Optional[bool] = None,
        delete_on_timeout: Optional[bool] = None,
        jump: Optional[Union[JumpOptions, Mapping[str, Any]]] = None,
        info: Optional[Union[InfoOptions, Mapping[str, Any]]] = None,
        pacing_delay: Optional[float] = None,
    ):
        """
        Initialize the paginator.

        Args:
            pages: Strings and/or Documents (mappings are converted)
            template: Document whose set fields are shown on every document page
            symbols: Control symbols, overlaid on the defaults (None disables)
            viewer_id: Identity of the only viewer allowed to navigate
            timeout: Seconds to keep listening (default from config)
            stoppable: Attach the stop control
            circular: Wrap around on back/next
            delete_on_timeout: Delete the message when the session times out
            jump: Jump prompt options (used when a jump symbol is set)
            info: Help message options (used when an info symbol is set)
            pacing_delay: Seconds between attaching two controls
        """
        self._pages = PageStore(pages)
        self.template: Optional[DocumentTemplate] = _coerce_template(template)
        self.symbols: ControlSymbolMap = _coerce_symbols(symbols)
        self.viewer_id = viewer_id
        self.timeout = timeout if timeout is not None else config.PAGINATOR_TIMEOUT
        self.stoppable = stoppable if stoppable is not None else config.PAGINATOR_STOPPABLE
        self.circular = circular if circular is not None else config.PAGINATOR_CIRCULAR
        self.delete_on_timeout = (
            delete_on_timeout if delete_on_timeout is not None else config.PAGINATOR_DELETE_ON_TIMEOUT
        )
        self.jump: JumpOptions = _coerce_options(JumpOptions, jump, "jump")
        self.info: InfoOptions = _coerce_options(InfoOptions, info, "info")
        self.pacing_delay = pacing_delay if pacing_delay is not None else config.CONTROL_PACING_DELAY

        self._state = SessionState.IDLE
        self._end_reason: Optional[EndReason] = None
        self._failure: Optional[BaseException] = None
        self._listeners: Dict[str, List[Tuple[Listener, bool]]] = defaultdict(list)

        self._transport: Optional[PaginatorTransport] = None
        self._channel: ChannelHandle = None
        self._message: MessageHandle = None
        self._navigation: Optional[NavigationState] = None
        self._merger: Optional[TemplateMerger] = None
        self._mapping: Optional[ControlMapping] = None
        self._stream: Optional[ControlEventStream] = None
        self._task: Optional[asyncio.Task] = None
        self._background: Set[asyncio.Task] = set()

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def _configurable(self, what: str) -> bool:
        if self._state is SessionState.RUNNING:
            log_warning(f"Ignoring {what} change while the paginator is running")
            return False
        return True

    def add_page(self, page: Any) -> "Paginator":
        if self._configurable("pages"):
            self._pages.append(page)
        return self

    def set_pages(self, pages: Iterable[Any]) -> "Paginator":
        if self._configurable("pages"):
            self._pages.replace_all(pages)
            self._navigation = None
        return self

    def set_symbols(self, symbols: Union[ControlSymbolMap, Mapping[str, Any]]) -> "Paginator":
        if self._configurable("symbols"):
            self.symbols = _coerce_symbols(symbols)
        return self

    def set_timeout(self, timeout: float) -> "Paginator":
        if self._configurable("timeout"):
            self.timeout = timeout
        return self

    def set_stoppable(self, enable: bool) -> "Paginator":
        if self._configurable("stoppable"):
            self.stoppable = enable
        return self

    def set_template(self, template: Union[DocumentTemplate, Mapping[str, Any], None]) -> "Paginator":
        if self._configurable("template"):
            self.template = _coerce_template(template)
        return self

    def set_circular(self, enable: bool) -> "Paginator":
        if self._configurable("circular"):
            self.circular = enable
        return self

    def set_jump(self, options: Union[JumpOptions, Mapping[str, Any]]) -> "Paginator":
        if self._configurable("jump options"):
            self.jump = _coerce_options(JumpOptions, options, "jump")
        return self

    def set_info(self, options: Union[InfoOptions, Mapping[str, Any]]) -> "Paginator":
        if self._configurable("info options"):
            self.info = _coerce_options(InfoOptions, options, "info")
        return self

    def listen(self, viewer_id: Any) -> "Paginator":
        """Set the viewer allowed to navigate."""
        if self._configurable("viewer"):
            self.viewer_id = viewer_id
        return self

    # -------------------------------------------------------------------------
    # Lifecycle notifications
    # -------------------------------------------------------------------------

    def on(self, event: str, listener: Listener) -> "Paginator":
        """Register a listener for "end" or "error"."""
        self._add_listener(event, listener, once=False)
        return self

    def once(self, event: str, listener: Listener) -> "Paginator":
        """Register a listener that fires at most once."""
        self._add_listener(event, listener, once=True)
        return self

    def _add_listener(self, event: str, listener: Listener, once: bool) -> None:
        if event not in LIFECYCLE_EVENTS:
            raise ValueError(f"Unknown paginator event: {event}")
        self._listeners[event].append((listener, once))

    def _emit(self, event: str, *args: Any) -> None:
        listeners = self._listeners[event]
        self._listeners[event] = [(fn, once) for fn, once in listeners if not once]

        for listener, _ in listeners:
            try:
                listener(*args)
            except Exception as e:
                log_error(f"Paginator '{event}' listener failed: {e}")

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state is SessionState.RUNNING

    @property
    def destroyed(self) -> bool:
        return self._end_reason is EndReason.DESTROYED

    @property
    def end_reason(self) -> Optional[EndReason]:
        return self._end_reason

    @property
    def page_count(self) -> int:
        return self._pages.page_count

    @property
    def pages(self) -> Tuple[Page, ...]:
        return tuple(self._pages)

    @property
    def current_index(self) -> int:
        return self._navigation.current_index if self._navigation else 0

    @property
    def message(self) -> MessageHandle:
        """Handle of the displayed message, once started."""
        return self._message

    @property
    def footer_format(self) -> Optional[str]:
        return self._merger.footer_format if self._merger else None

    # -------------------------------------------------------------------------
    # Start / stop
    # -------------------------------------------------------------------------

    def _validate(self) -> None:
        """
        Check the configuration before any transport call.

        Raises:
            ConfigurationError: On the first problem found
        """
        if self._state is SessionState.ENDED:
            raise ConfigurationError(
                ConfigurationErrorKind.ALREADY_ENDED,
                "Tried to use the paginator after it ended",
            )

        if self._pages.page_count < 1:
            raise ConfigurationError(
                ConfigurationErrorKind.EMPTY_PAGES,
                "At least one page is required to start the paginator",
            )

        self.symbols.validate()

        if self.viewer_id is None or self.viewer_id == "" or isinstance(self.viewer_id, bool):
            raise ConfigurationError(
                ConfigurationErrorKind.MISSING_VIEWER,
                "viewer_id must identify the user allowed to navigate",
            )

        if not _is_positive(self.timeout):
            raise ConfigurationError(
                ConfigurationErrorKind.INVALID_OPTION,
                f"timeout must be a positive number of seconds, got {self.timeout!r}",
            )

        if not _is_positive(self.pacing_delay) and self.pacing_delay != 0:
            raise ConfigurationError(
                ConfigurationErrorKind.INVALID_OPTION,
                f"pacing_delay must be zero or positive, got {self.pacing_delay!r}",
            )

        if self.symbols.jump is not None:
            self.jump.validate()
        if self.symbols.info is not None:
            self.info.validate()

    async def start(self, transport: PaginatorTransport, channel: ChannelHandle) -> None:
        """
        Display the first page and begin listening for controls.

        Returns once the controls are attached; events are then handled in
        the background until the session ends (see wait()).

        Invalid configuration is emitted on "error" and nothing is sent.
        Starting a running paginator does nothing.

        Args:
            transport: Chat transport to render through
            channel: Where to send the message

        Raises:
            TransportError: If the transport fails while starting
        """
        if self._state is SessionState.RUNNING:
            return

        try:
            self._validate()
        except ConfigurationError as e:
            log_warning(f"Paginator not started: {e}")
            self._emit("error", e)
            return

        self._transport = transport
        self._channel = channel
        self._navigation = NavigationState(self._pages.page_count, circular=self.circular)
        self._merger = TemplateMerger(self.template)
        self._mapping = ControlMapping(self.symbols, stoppable=self.stoppable)
        self._state = SessionState.RUNNING

        try:
            self._message = await transport.render_initial(channel, self._render())

            if self._pages.page_count == 1:
                self._finish(EndReason.ONLY_ONE_PAGE)
                return

            for position, (_, symbol) in enumerate(self._mapping.enabled()):
                if self._state is not SessionState.RUNNING:
                    return
                if position and self.pacing_delay:
                    await asyncio.sleep(self.pacing_delay)
                await transport.attach_control(self._message, symbol)

            if self._state is not SessionState.RUNNING:
                return

            stream = await transport.subscribe_control_events(
                self._message, self._accepts, self.timeout
            )
        except Exception:
            self._finish(EndReason.TRANSPORT_ERROR)
            raise

        if self._state is not SessionState.RUNNING:
            stream.close()
            return

        self._stream = stream
        self._task = asyncio.create_task(self._listen(stream))
        log_session(
            "start",
            f"Paginator started ({self._pages.page_count} pages, viewer {self.viewer_id}, "
            f"timeout {self.timeout:g}s)"
        )

    def destroy(self) -> None:
        """
        End the session now.

        Safe to call in any state and more than once; only the first call
        has an effect. Closes the control stream and cancels a pending
        jump prompt.
        """
        if not self._finish(EndReason.DESTROYED):
            return

        task = self._task
        if task is None or task.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if task is not current:
            task.cancel()

    async def wait(self) -> Optional[EndReason]:
        """
        Wait for the session to end.

        Returns:
            The end reason (None if the session never started)

        Raises:
            TransportError: If the transport failed while listening
            Exception: Whatever else ended the session while listening
        """
        if self._task is not None:
            await asyncio.wait({self._task})
        if self._failure is not None:
            raise self._failure
        return self._end_reason

    def _finish(self, reason: EndReason) -> bool:
        """Move to ENDED and notify listeners. Returns False if already ended."""
        if self._state is SessionState.ENDED:
            return False

        self._state = SessionState.ENDED
        self._end_reason = reason
        if self._stream is not None:
            self._stream.close()

        log_session("end", f"Paginator ended: {reason.value}")
        self._emit("end", reason.value)
        return True

    def _fail(self, error: Exception) -> None:
        self._failure = error
        if isinstance(error, TransportError):
            log_error(f"Paginator transport failure: {error}")
            reason = EndReason.TRANSPORT_ERROR
        else:
            log_error(f"Paginator failed handling a control: {error!r}")
            reason = EndReason.FAILED
        self._emit("error", error)
        self._finish(reason)

    # -------------------------------------------------------------------------
    # Event loop
    # -------------------------------------------------------------------------

    async def _listen(self, stream: ControlEventStream) -> None:
        """Consume control events until the session ends or times out."""
        try:
            try:
                await asyncio.wait_for(self._consume(stream), timeout=self.timeout)
            except asyncio.TimeoutError:
                pass
            finally:
                stream.close()

            if self._state is SessionState.RUNNING:
                if self.delete_on_timeout:
                    await self._transport.delete_message(self._message)
                self._finish(EndReason.TIMED_OUT)
        except Exception as e:
            self._fail(e)

    async def _consume(self, stream: ControlEventStream) -> None:
        async for event in stream:
            if self._state is not SessionState.RUNNING:
                break
            await self._dispatch(event)
            if self._state is not SessionState.RUNNING:
                break

    def _is_viewer(self, actor_id: Any) -> bool:
        return actor_id is not None and str(actor_id) == str(self.viewer_id)

    def _accepts(self, event: ControlEvent) -> bool:
        """Subscription filter: enabled symbol pressed by the viewer."""
        return self._is_viewer(event.actor_id) and self._mapping.resolve(event.symbol) is not None

    async def _dispatch(self, event: ControlEvent) -> None:
        """Apply one control event. Rejected events change nothing."""
        if not self._is_viewer(event.actor_id):
            return
        action = self._mapping.resolve(event.symbol)
        if action is None:
            return

        if event.removable:
            try:
                await self._transport.remove_control_from_user(self._message, event)
            except TransportError as e:
                log_warning(f"Could not clear control press: {e}")

        if action is ControlAction.STOP:
            self._finish(EndReason.STOPPED)
            return

        if action is ControlAction.TRASH:
            self._finish(EndReason.TRASHED)
            await self._transport.delete_message(self._message)
            return

        if action is ControlAction.INFO:
            await self._show_info()
            return

        if action is ControlAction.JUMP:
            changed = await self._prompt_jump()
        else:
            changed = self._navigate(action)

        if changed and self._state is SessionState.RUNNING:
            log_debug(
                f"{action.value}: page {self._navigation.current_page_number}/"
                f"{self._pages.page_count}"
            )
            await self._transport.render_update(self._message, self._render())

    def _navigate(self, action: ControlAction) -> bool:
        navigation = self._navigation
        if action is ControlAction.FRONT:
            return navigation.front()
        if action is ControlAction.REAR:
            return navigation.rear()
        if action is ControlAction.BACK:
            return navigation.back()
        if action is ControlAction.NEXT:
            return navigation.next()
        return False

    def _render(self) -> Page:
        index = self._navigation.current_index
        return self._merger.merge(self._pages[index], index, self._pages.page_count)

    # -------------------------------------------------------------------------
    # Jump / info
    # -------------------------------------------------------------------------

    async def _prompt_jump(self) -> bool:
        """
        Ask the viewer for a page number and go there.

        The wait is bounded by the jump timeout. The session timeout keeps
        running and cancels the wait when it fires first.

        Returns:
            True if the page changed
        """
        options = self.jump
        prompt: MessageHandle = None
        reply: Optional[TextReply] = None

        try:
            if options.prompt:
                prompt = await self._transport.send_message(self._channel, options.prompt)

            try:
                reply = await asyncio.wait_for(
                    self._transport.await_reply(
                        self._channel,
                        lambda candidate: self._is_viewer(candidate.actor_id),
                        options.timeout,
                    ),
                    timeout=options.timeout,
                )
            except asyncio.TimeoutError:
                reply = None
        finally:
            if prompt is not None and options.delete_prompt:
                await self._delete_quietly(prompt)
            if reply is not None and reply.handle is not None and options.delete_reply:
                await self._delete_quietly(reply.handle)

        if reply is None or self._state is not SessionState.RUNNING:
            return False

        page_number = parse_page_number(reply.text)
        if page_number is None:
            log_debug(f"Ignoring jump reply {reply.text!r}")
            return False
        if not self._navigation.jump(page_number):
            return False
        log_session("jump", f"Viewer {self.viewer_id} jumped to page {page_number}")
        return True

    async def _show_info(self) -> None:
        handle = await self._transport.send_message(self._channel, self.info.text)
        if self.info.delete_after is not None:
            task = asyncio.create_task(self._expire_message(handle, self.info.delete_after))
            self._background.add(task)
            task.add_done_callback(self._background.discard)

    async def _expire_message(self, handle: MessageHandle, delay: float) -> None:
        await asyncio.sleep(delay)
        await self._delete_quietly(handle)

    async def _delete_quietly(self, handle: MessageHandle) -> None:
        """Best-effort cleanup of auxiliary messages (prompts, replies, help)."""
        try:
            await self._transport.delete_message(handle)
        except TransportError as e:
            log_warning(f"Could not delete auxiliary message: {e}")


def _is_positive(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0


def _coerce_template(template) -> Optional[DocumentTemplate]:
    if template is None or isinstance(template, Document):
        return template
    if isinstance(template, Mapping):
        return Document.from_dict(dict(template))
    raise ConfigurationError(
        ConfigurationErrorKind.INVALID_OPTION,
        f"template must be a Document or mapping, got {type(template).__name__}",
    )


def _coerce_symbols(symbols) -> ControlSymbolMap:
    if symbols is None:
        return ControlSymbolMap()
    if isinstance(symbols, ControlSymbolMap):
        return symbols
    if isinstance(symbols, Mapping):
        return ControlSymbolMap().with_overrides(symbols)
    raise ConfigurationError(
        ConfigurationErrorKind.INVALID_OPTION,
        f"symbols must be a ControlSymbolMap or mapping, got {type(symbols).__name__}",
    )


def _coerce_options(kind, options, label: str):
    if options is None:
        return kind()
    if isinstance(options, kind):
        return options
    if isinstance(options, Mapping):
        return kind().with_overrides(options)
    raise ConfigurationError(
        ConfigurationErrorKind.INVALID_OPTION,
        f"{label} options must be {kind.__name__} or a mapping, got {type(options).__name__}",
    )
