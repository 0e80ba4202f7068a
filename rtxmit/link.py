"""
Link-budget checks consulted before communicating or transmitting.

Range and line-of-sight are computed by the host's network model; the engine
only sees a yes/no answer per tick.


Classes
-------
LinkBudget
    Abstract link check.
AlwaysLink
    Link that is always available.
LinkSchedule
    Link with scheduled outage windows against a clock.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Sequence, Tuple
from rtxmit import logger

#-----------------------------------------------------------------------------#

# Global Variables
log = logger.addLog('link')

###############################################################################

class LinkBudget(ABC):
    """Abstract link-budget check."""

    @abstractmethod
    def linkOk(self)->bool:
        """Return True if a connection to the destination exists now."""

###############################################################################

class AlwaysLink(LinkBudget):
    """Link available unless switched off through `up`."""

    def __init__(self, up:bool=True)->None:
        self.up = up

    def linkOk(self)->bool:
        return self.up

###############################################################################

class LinkSchedule(LinkBudget):
    """
    Link with outage windows.


    Parameters
    ----------
    outages : sequence of (start, end)
        Half-open time intervals [start, end) during which the link is down.
    clock : callable, optional
        Returns the current time. Defaults to the `time` attribute, which the
        owner advances.
    """

    def __init__(self,
                 outages:Sequence[Tuple[float,float]] = (),
                 clock:Optional[Callable[[],float]] = None,
                 )->None:
        self.outages:List[Tuple[float,float]] = sorted(outages)
        self.clock = clock
        self.time = 0.0
        self._lastOk = True

    def __repr__(self)->str:
        return f"<{self.__class__.__name__} {len(self.outages)} outages>"

    def linkOk(self)->bool:
        t = self.clock() if (self.clock is not None) else self.time
        ok = not any(start <= t < end for start,end in self.outages)
        if (ok != self._lastOk):
            log.info('Link %s at t=%.2f', 'restored' if ok else 'lost', t)
            self._lastOk = ok
        return ok
