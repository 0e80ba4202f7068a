"""
Cooperative transmission scheduler for queued science data.

The scheduler drains an antenna's transmission queue over simulation time. A
cycle starts on an operator request and runs as a generator task that the
host tick loop resumes once per fixed step with the step duration. Each resume
moves one bandwidth-limited chunk of the head item. A cycle ends when the queue
is empty or an abort was requested; either way every item that entered the
cycle leaves the queue through the completion sink or the source container.


Classes
-------
TransmissionScheduler
    Streaming state machine of one antenna.


Constants
---------
NOTIFY_EVERY : float
    Simulation seconds between progress notifications (2.0).
SIZE_TOLERANCE : float
    Relative tolerance under which an item counts as fully sent (1e-9).


Notes
-----
**Cycle States:**

.. code-block:: none

    Idle -> Starting -> Streaming -> Completing ---------> Starting | Idle
                            |     -> PartialCompleting --> Aborting | Idle
                            +-----------------------------> Aborting -> Idle

- Starting marks the head item triggered and resolves its transfer context.
  Resolution failure aborts the whole cycle.
- Streaming suspends at the top of every tick. On resume the abort flag and
  the link are checked before any data moves, so a tick aborted by the
  resource accountant never streams a chunk.
- Completing delivers the head item and pops it.
- PartialCompleting delivers an interrupted item as partial when the item (or
  the antenna) allows incomplete delivery.
- Aborting returns every remaining queue item to the source container.

**Ordering within a tick (driven by the host):**

1. DataTransmitter.fixedUpdate(): deployment refresh, resource accounting
   (may call abort()).
2. TransmissionScheduler.step(dt): resume streaming.
"""

from __future__ import annotations
from collections.abc import Generator
from typing import Callable, List, Optional, TYPE_CHECKING
if (TYPE_CHECKING):
    from rtxmit.antenna import DataTransmitter
    from rtxmit.science import DataItem
from rtxmit import logger

#-----------------------------------------------------------------------------#

# Simulation seconds between progress notifications
NOTIFY_EVERY = 2.0

# Accumulated chunks within this fraction of the item size complete it
SIZE_TOLERANCE = 1e-9

# Global Variables
log = logger.addLog('xmit.sched')

###############################################################################

class TransmissionScheduler:
    """
    Streaming state machine draining an antenna's transmission queue.


    Parameters
    ----------
    antenna : DataTransmitter
        Owning antenna. Supplies state, rates, queue and collaborators.


    Attributes
    ----------
    progress : float
        Fraction of the current head item streamed, 0.0 to 1.0.
    dataThrough : float
        Amount streamed of the current head item.
    abortReason : str
        Reason given to the last abort() of the current cycle.
    cycles : int
        Number of cycles started.
    itemsDelivered : int
        Items handed to the completion sink (full or partial).
    itemsReturned : int
        Items handed back to the source container.
    unreturned : list of DataItem
        Items the source container refused. Kept so no data is dropped.


    Methods
    -------
    begin(callback)
        Start a transmission cycle.
    step(dt)
        Advance the running cycle by one tick.
    abort(reason)
        Request cooperative cancellation of the running cycle.


    Notes
    -----
    The generator task is not picklable. Saving a simulation mid-cycle drops
    the task; the restored antenna comes back idle.
    """

    ## Constructor ===========================================================#
    def __init__(self, antenna:DataTransmitter)->None:
        self.antenna = antenna
        self.progress = 0.0
        self.dataThrough = 0.0
        self.abortReason = ''
        self.cycles = 0
        self.itemsDelivered = 0
        self.itemsReturned = 0
        self.unreturned:List[DataItem] = []
        self._task:Optional[Generator] = None

    ## Properties ============================================================#
    @property
    def running(self)->bool:
        """True while a cycle task exists"""
        return self._task is not None

    ## Special Methods =======================================================#
    def __repr__(self)->str:
        state = 'running' if self.running else 'idle'
        return (f"<{self.__class__.__name__} {self.antenna.title} {state} "
                f"{self.progress:.0%}>")

    #--------------------------------------------------------------------------
    def __getstate__(self)->dict:
        """Drop the generator task, which cannot be pickled."""
        state = self.__dict__.copy()
        if (state['_task'] is not None):
            log.warning('%s: in-flight transmission not saved',
                        self.antenna.title)
        state['_task'] = None
        return state

    ## Methods ===============================================================#
    def begin(self,
              callback:Optional[Callable[[],None]] = None,
              )->bool:
        """
        Start a transmission cycle over the antenna's queue.


        Parameters
        ----------
        callback : callable, optional
            Invoked exactly once when the cycle ends.


        Returns
        -------
        started : bool
            False if a cycle is already running or the queue is empty.


        Notes
        -----
        The Starting state runs immediately, up to the first suspension in
        Streaming. A cycle that fails during Starting completes (and calls
        callback) before this method returns.
        """

        ant = self.antenna
        if (ant.busy):
            log.warning('%s: transmission already in progress', ant.title)
            return False
        if (not len(ant.queue)):
            log.info('%s: nothing queued to transmit', ant.title)
            return False

        self.cycles += 1
        self._task = self._transmitQueued(callback)
        self._advance(None)
        return True

    #--------------------------------------------------------------------------
    def step(self, dt:float)->bool:
        """
        Resume the running cycle for one tick of duration dt.


        Returns
        -------
        running : bool
            True if the cycle is still running after this tick.
        """

        if (self._task is None):
            return False
        return self._advance(dt)

    #--------------------------------------------------------------------------
    def abort(self, reason:str)->None:
        """
        Request cancellation of the running cycle.

        The flag is observed at the next suspension point. Requests while no
        cycle is running are ignored.
        """

        ant = self.antenna
        if (not ant.busy):
            log.debug('%s: abort ignored, not transmitting (%s)',
                      ant.title, reason)
            return
        if (ant.state.aborted):
            log.debug('%s: already aborting, also: %s', ant.title, reason)
            return
        ant.state.aborted = True
        self.abortReason = reason
        log.warning('%s: transmission aborted: %s', ant.title, reason)
        ant.post(f"[{ant.title}]: Transmission aborted! {reason}")

    ## Helper Methods ========================================================#
    def _advance(self, dt:Optional[float])->bool:
        """Send dt to the task; clear it when the task finishes."""
        try:
            if (dt is None):
                next(self._task)
            else:
                self._task.send(dt)
        except StopIteration:
            self._task = None
            return False
        return True

    #--------------------------------------------------------------------------
    def _transmitQueued(self,
                        callback:Optional[Callable[[],None]],
                        )->Generator[None,float,None]:
        """
        Transmission cycle task.

        Yields once per tick while streaming and receives the tick duration.
        """

        ant = self.antenna
        st = ant.state
        queue = ant.queue

        st.busy = True
        ant.refreshStatus()
        log.info('%s: transmission cycle started (%d queued)',
                 ant.title, len(queue))
        elapsed = 0.0

        while (len(queue) and (not st.aborted)):

            # Starting
            item = queue.head
            item.triggered = True
            self.dataThrough = 0.0
            self.progress = 0.0
            ant.post(f"[{ant.title}]: Starting Transmission of {item.title}")

            context = ant.resolver.resolve(item.subjectId)
            if (context is None):
                self.abort(f"Unable to identify science subjectID:"
                           f"{item.subjectId}!")
                break

            ant.status.label = self._label()

            # Streaming
            while ((not self._sent(item)) and (not st.aborted)):
                dt = yield
                if (st.aborted):
                    break
                if (not ant.canTransmit()):
                    self.abort("Connection lost")
                    break

                chunk = min(dt * ant.effectiveBandwidth,
                            item.size - self.dataThrough)
                context.stream(chunk, ant.vessel)
                self.dataThrough += chunk
                self.progress = min(self.dataThrough / item.size, 1.0)
                ant.status.label = self._label()

                elapsed += dt
                if (elapsed >= NOTIFY_EVERY):
                    ant.post(f"[{ant.title}]: Transmission progress: "
                             f"{self.progress:.0%}")
                    elapsed -= NOTIFY_EVERY

            # Completing / PartialCompleting
            if (self._sent(item)):
                self.progress = 1.0
                if (self._deliver(item, False)):
                    ant.post(f"[{ant.title}]: Transmission of {item.title} "
                             f"completed")
            elif ((self.dataThrough > 0) and self._allowIncomplete(item)):
                if (self._deliver(item, True)):
                    ant.post(f"[{ant.title}]: Partial transmission of "
                             f"{item.title} completed")

        # Aborting
        if (st.aborted and len(queue)):
            ant.post(f"[{ant.title}]: Returning unsent data.")
            for item in queue.drain():
                self._returnItem(item)

        # Idle
        log.info('%s: transmission cycle ended%s', ant.title,
                 f' ({self.abortReason})' if st.aborted else '')
        st.aborted = False
        st.busy = False
        self.abortReason = ''
        ant.refreshStatus()

        if (callback is not None):
            try:
                callback()
            except Exception:
                log.exception('%s: transmission callback failed', ant.title)

    #--------------------------------------------------------------------------
    def _sent(self, item:DataItem)->bool:
        """True once the streamed total reaches the item size."""
        slack = SIZE_TOLERANCE * max(item.size, 1.0)
        return self.dataThrough >= item.size - slack

    #--------------------------------------------------------------------------
    def _allowIncomplete(self, item:DataItem)->bool:
        """Item flag if set, otherwise the antenna's xmitIncomplete."""
        if (item.allowIncomplete is not None):
            return item.allowIncomplete
        return self.antenna.state.xmitIncomplete

    #--------------------------------------------------------------------------
    def _deliver(self, item:DataItem, isPartial:bool)->bool:
        """
        Hand the head item to the completion sink and pop it.

        A failing sink leaves the item queued and aborts the cycle, so the
        recovery path returns it to the source container.
        """

        ant = self.antenna
        try:
            ant.sink.deliver(item, isPartial)
        except Exception:
            log.exception('%s: completion sink rejected %s',
                          ant.title, item.title)
            self.abort(f"Could not deliver {item.title}")
            return False
        ant.queue.popHead()
        self.itemsDelivered += 1
        return True

    #--------------------------------------------------------------------------
    def _returnItem(self, item:DataItem)->None:
        """Return an unsent item; keep it in `unreturned` if refused."""
        try:
            self.antenna.container.returnItem(item)
        except Exception:
            log.exception('%s: source container rejected %s',
                          self.antenna.title, item.title)
            self.unreturned.append(item)
            return
        self.itemsReturned += 1

    #--------------------------------------------------------------------------
    def _label(self)->str:
        return f"Transmitting ({self.progress:.0%})"
