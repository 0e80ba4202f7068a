"""
Resource pools and per-tick power accounting for data transmitters.

An active antenna draws a keep-alive (telemetry) cost every tick while usable,
and a larger transmit cost instead while a transfer is running. Both draws are
negotiated against a shared resource pool that must supply at least 99% of the
request for it to count as satisfied.


Classes
-------
ResourcePool
    Abstract resource pool interface.
Battery
    Finite stored resource with optional recharge.
InfinitePool
    Pool that always satisfies requests.
ResourceAccountant
    Per-tick draw negotiation for one antenna.


Constants
---------
SATISFACTION : float
    Minimum supplied fraction for a draw to succeed (0.99).


Notes
-----
**Failure semantics:**

- Telemetry shortfall disables the antenna (hard shutdown). The operator has
  to re-enable it once the resource is available again.
- Transmit shortfall only aborts the current transfer. The antenna then falls
  back to the telemetry draw on the same tick.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING
if (TYPE_CHECKING):
    from rtxmit.antenna import DataTransmitter
import numpy as np
from rtxmit import logger

#-----------------------------------------------------------------------------#

# Minimum supplied fraction for a draw to count as satisfied
SATISFACTION = 0.99

# Global Variables
log = logger.addLog('res')

###############################################################################

class ResourcePool(ABC):
    """
    Abstract resource pool.

    Attributes
    ----------
    resourceName : str
        Name of the resource, used in failure messages.
    errorMsg : str
        Reason of the last failed request, empty if none failed yet.
    """

    def __init__(self, resourceName:str='ElectricCharge')->None:
        self.resourceName = resourceName
        self.errorMsg = ''

    @abstractmethod
    def tryConsume(self, amount:float, threshold:float=SATISFACTION)->float:
        """
        Request an amount of resource.


        Parameters
        ----------
        amount : float
            Requested amount for this tick.
        threshold : float
            Minimum fraction the pool must supply.


        Returns
        -------
        fraction : float
            Supplied fraction of the request, 0.0 to 1.0. The caller compares
            it against threshold.
        """

    def recharge(self, dt:float)->None:
        """Advance any time-dependent replenishment. No-op by default."""

    @property
    def level(self)->float:
        """Current stored amount, infinite if not tracked."""
        return float('inf')

###############################################################################

class Battery(ResourcePool):
    """
    Finite resource store with an optional recharge rate.

    A request that can be met to at least the threshold is drawn in full (up
    to what is stored). A request below threshold draws nothing and sets
    errorMsg.


    Parameters
    ----------
    capacity : float
        Maximum stored amount.
    amount : float, optional
        Initial stored amount (default: full).
    rechargeRate : float, default=0.0
        Amount restored per second by recharge().
    resourceName : str, default='ElectricCharge'
        Resource name.
    """

    ## Constructor ===========================================================#
    def __init__(self,
                 capacity:float,
                 amount:float = None,
                 rechargeRate:float = 0.0,
                 resourceName:str = 'ElectricCharge',
                 )->None:
        super().__init__(resourceName)
        if (capacity < 0):
            msg = "Battery capacity cannot be negative"
            log.critical(msg)
            raise ValueError(msg)
        self.capacity = float(capacity)
        self.amount = self.capacity if (amount is None) else amount
        self.rechargeRate = rechargeRate

    ## Properties ============================================================#
    @property
    def amount(self)->float:
        """Stored amount, clipped to [0, capacity]"""
        return self._amount

    @amount.setter
    def amount(self, value:float)->None:
        self._amount = float(np.clip(value, 0.0, self.capacity))

    #--------------------------------------------------------------------------
    @property
    def level(self)->float:
        return self._amount

    ## Special Methods =======================================================#
    def __repr__(self)->str:
        return (f"<{self.__class__.__name__} {self.resourceName} "
                f"{self._amount:.2f}/{self.capacity:.2f}>")

    ## Methods ===============================================================#
    def tryConsume(self, amount:float, threshold:float=SATISFACTION)->float:
        if (amount <= 0):
            return 1.0
        supplied = min(self._amount, amount)
        fraction = supplied / amount
        if (fraction < threshold):
            self.errorMsg = f"not enough {self.resourceName}"
            return fraction
        self.amount = self._amount - supplied
        return fraction

    #--------------------------------------------------------------------------
    def recharge(self, dt:float)->None:
        self.amount = self._amount + self.rechargeRate*dt

###############################################################################

class InfinitePool(ResourcePool):
    """Pool that satisfies every request in full."""

    def tryConsume(self, amount:float, threshold:float=SATISFACTION)->float:
        return 1.0

###############################################################################

class ResourceAccountant:
    """
    Per-tick resource negotiation for one data transmitter.

    Parameters
    ----------
    antenna : DataTransmitter
        Antenna whose state and rates drive the draw.

    Attributes
    ----------
    lastDraw : str
        Which draw succeeded on the last tick: 'transmit', 'telemetry' or ''
        when nothing was drawn or the antenna shut down.
    """

    def __init__(self, antenna:DataTransmitter)->None:
        self.antenna = antenna
        self.lastDraw = ''

    #--------------------------------------------------------------------------
    def processPower(self, dt:float)->None:
        """
        Draw this tick's resource cost and enforce shortfall policy.


        Parameters
        ----------
        dt : float
            Tick duration in seconds.


        Notes
        -----
        Sequence:

        1. Not usable: abort an active transfer ("Antenna disabled!").
        2. Usable and busy: draw transmit cost. On shortfall abort the
           transfer with the pool's reason and fall through to 3.
        3. Usable and idle (or transmit failed): draw telemetry cost. On
           shortfall disable the antenna and post a shutdown notice.
        """

        ant = self.antenna
        pool = ant.pool
        self.lastDraw = ''

        if (not ant.usable):
            if (ant.busy):
                ant.scheduler.abort("Antenna disabled!")
            return

        aborting = False
        if (ant.busy):
            supplied = pool.tryConsume(ant.effectiveTransmitConsumption*dt,
                                       SATISFACTION)
            log.debug('%s: (transmit) supplied=%.4f', ant.title, supplied)
            if (supplied < SATISFACTION):
                ant.scheduler.abort(pool.errorMsg)
                aborting = True
            else:
                self.lastDraw = 'transmit'

        if ((not ant.busy) or aborting):
            supplied = pool.tryConsume(ant.effectiveTelemetryConsumption*dt,
                                       SATISFACTION)
            log.debug('%s: (telemetry) supplied=%.4f', ant.title, supplied)
            if (supplied < SATISFACTION):
                ant.enabled = False
                log.warning('%s: telemetry shortfall, antenna disabled',
                            ant.title)
                ant.post(f"[{ant.title}]: Antenna shutting down, "
                         f"{pool.errorMsg}")
            else:
                self.lastDraw = 'telemetry'
