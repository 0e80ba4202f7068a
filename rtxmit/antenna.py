"""
Resource-gated data transmitter attached to a vessel.

The DataTransmitter is the engine instance of one antenna. It owns the antenna
state and the named rate multipliers, and composes the deployment tracker,
the resource accountant, the transmission scheduler and the status projector.
The host drives it with three per-tick calls in a fixed order.


Classes
-------
AntennaState
    Mutable state flags and base rates of one antenna.
DataTransmitter
    Engine instance composing tracker, accountant, scheduler and status.


Notes
-----
**Per-tick sequence (host side):**

1. update(dt): advance deployment animations (frame step).
2. fixedUpdate(dt): refresh deployment, account for resource draw (flight
   only), refresh status. May abort a running cycle or disable the antenna.
3. step(dt): resume the transmission cycle, if any.

tick(dt) runs all three in this order.

**Effective rates:**

Each effective rate is its base rate times the combined multiplier of its
category, cached and refreshed on every multiplier change:

.. code-block:: none

    effectivePower                = basePower       * power
    effectiveBandwidth            = baseBandwidth   * bandwidth
    effectiveTransmitConsumption  = baseConsumption * consumption
    effectiveTelemetryConsumption = baseTelemetry   * consumption
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import (Any, Callable, Dict, Iterable, Mapping, Optional,
                    Sequence)
from rtxmit import config as cfg
from rtxmit import logger
from rtxmit.deployment import DeployReporter, DeploymentTracker
from rtxmit.link import AlwaysLink, LinkBudget
from rtxmit.multiplier import (BANDWIDTH, CONSUMPTION, POWER,
                               MultiplierRegistry)
from rtxmit.notify import LogNotifier, Notifier
from rtxmit.resources import InfinitePool, ResourceAccountant, ResourcePool
from rtxmit.science import (CompletionSink, DataContainer, DataItem,
                            ScienceArchive, SourceContainer, SubjectRegistry,
                            SubjectResolver, TransmissionQueue)
from rtxmit.status import StatusProjector
from rtxmit.transmission import TransmissionScheduler

#-----------------------------------------------------------------------------#

# Global Variables
log = logger.addLog('ant')

###############################################################################

@dataclass
class AntennaState:
    """
    State flags and configured base rates of one antenna.

    Attributes
    ----------
    enabled : bool
        Operator activation.
    deployed : bool
        Deployment state derived by the tracker.
    busy : bool
        True while a transmission cycle runs.
    aborted : bool
        Abort requested for the running cycle. Cleared at cycle end.
    xmitIncomplete : bool
        Antenna-wide permission for partial delivery.
    basePower, baseBandwidth, baseConsumption, baseTelemetry : float
        Nominal power rating, data rate, transmit consumption and telemetry
        consumption.
    """

    enabled: bool = True
    deployed: bool = False
    busy: bool = False
    aborted: bool = False
    xmitIncomplete: bool = False
    basePower: float = 500000.0
    baseBandwidth: float = 0.5
    baseConsumption: float = 5.0
    baseTelemetry: float = 0.1

    @property
    def usable(self)->bool:
        """Enabled and deployed"""
        return self.enabled and self.deployed

###############################################################################

class DataTransmitter:
    """
    Resource-gated streaming data transmitter.


    Parameters
    ----------
    config : AntennaConfig, optional
        Persisted configuration. Defaults to AntennaConfig().
    vessel : Any, optional
        Owning vessel, passed as destination context to transfer streams.
    pool : ResourcePool, optional
        Resource pool for draws (default: InfinitePool).
    link : LinkBudget, optional
        Link-budget check (default: AlwaysLink).
    resolver : SubjectResolver, optional
        Science subject resolver (default: empty SubjectRegistry).
    sink : CompletionSink, optional
        Receiver of delivered items (default: ScienceArchive).
    container : SourceContainer, optional
        Receiver of items returned on abort (default: DataContainer).
    notifier : Notifier, optional
        Operator notification sink (default: LogNotifier).
    reporters : sequence of DeployReporter, optional
        Linked deployment modules. None makes the antenna non-deployable.
    inverted : bool, default=False
        Reverse deployment polarity.
    allowToggle : bool, default=True
        Allow activation independent of deployment.
    params : TransmitterParams, optional
        Global settings. The consumption multiplier scales the telemetry
        draw only; transmissions are unaffected.


    Attributes
    ----------
    state : AntennaState
        Flags and base rates.
    multipliers : MultiplierRegistry
        Named rate multipliers.
    tracker : DeploymentTracker
        Deployment/admission tracker.
    accountant : ResourceAccountant
        Per-tick resource negotiation.
    scheduler : TransmissionScheduler
        Transmission cycle state machine.
    status : StatusProjector
        Displayed label and control visibility.
    queue : TransmissionQueue
        Items awaiting transmission.
    shouldConsume : bool
        True once started in a flight state.
    settingsFactor : float
        Global consumption setting, applied to the telemetry rate.


    Methods
    -------
    onLoad(node)
        Load configuration from a key/value node.
    save()
        Return the persisted configuration.
    onStart(startState)
        Enable resource accounting for flight states.
    tick(dt)
        Run update, fixedUpdate and step for one tick.
    startTransmission(callback)
        Begin transmitting the queue.
    stopTransmission()
        Abort the running cycle.
    setMultiplier(category, name, value) / removeMultiplier(category, name)
        Manage named rate multipliers.
    """

    ## Constructor ===========================================================#
    def __init__(self,
                 config:Optional[cfg.AntennaConfig] = None,
                 vessel:Any = None,
                 pool:Optional[ResourcePool] = None,
                 link:Optional[LinkBudget] = None,
                 resolver:Optional[SubjectResolver] = None,
                 sink:Optional[CompletionSink] = None,
                 container:Optional[SourceContainer] = None,
                 notifier:Optional[Notifier] = None,
                 reporters:Optional[Sequence[DeployReporter]] = None,
                 inverted:bool = False,
                 allowToggle:bool = True,
                 params:Optional[cfg.TransmitterParams] = None,
                 )->None:

        #---------------------------------------------------------------------#
        #   Collaborators                                                     #
        #---------------------------------------------------------------------#
        self.vessel = vessel
        self.pool = pool if (pool is not None) else InfinitePool()
        self.link = link if (link is not None) else AlwaysLink()
        self.resolver = (resolver if (resolver is not None)
                         else SubjectRegistry())
        if (sink is None):
            registry = (self.resolver
                        if isinstance(self.resolver, SubjectRegistry)
                        else None)
            sink = ScienceArchive(registry)
        self.sink = sink
        self.container = (container if (container is not None)
                          else DataContainer())
        self.notifier = notifier if (notifier is not None) else LogNotifier()

        #---------------------------------------------------------------------#
        #   Engine                                                            #
        #---------------------------------------------------------------------#
        self.state = AntennaState()
        self.queue = TransmissionQueue()
        self.status = StatusProjector()
        self._effective:Dict[str,float] = {}
        self.multipliers = MultiplierRegistry(
            onChange=self._onMultiplierChange)
        self.shouldConsume = False
        self.settingsFactor = (params.consumptionMultiplier
                               if (params is not None) else 1.0)

        self._applyConfig(config if (config is not None)
                          else cfg.AntennaConfig())

        self.tracker = DeploymentTracker(self.state, reporters,
                                         inverted, allowToggle)
        self.accountant = ResourceAccountant(self)
        self.scheduler = TransmissionScheduler(self)

        self.refreshStatus()

    ## Properties ============================================================#
    @property
    def enabled(self)->bool:
        """Operator activation flag"""
        return self.state.enabled

    @enabled.setter
    def enabled(self, value:bool)->None:
        if (value != self.state.enabled):
            log.info('%s: antenna %s', self.title,
                     'enabled' if value else 'disabled')
        self.state.enabled = bool(value)
        self.refreshStatus()

    #--------------------------------------------------------------------------
    @property
    def deployed(self)->bool:
        """Deployment state"""
        return self.state.deployed

    #--------------------------------------------------------------------------
    @property
    def deployable(self)->bool:
        """Whether deployment modules are linked"""
        return self.tracker.deployable

    #--------------------------------------------------------------------------
    @property
    def usable(self)->bool:
        """Enabled and deployed"""
        return self.state.usable

    #--------------------------------------------------------------------------
    @property
    def busy(self)->bool:
        """True while a transmission cycle runs"""
        return self.state.busy

    #--------------------------------------------------------------------------
    @property
    def xmitIncomplete(self)->bool:
        """Antenna-wide partial delivery permission"""
        return self.state.xmitIncomplete

    @xmitIncomplete.setter
    def xmitIncomplete(self, value:bool)->None:
        self.state.xmitIncomplete = bool(value)

    #--------------------------------------------------------------------------
    @property
    def canToggle(self)->bool:
        """Operator may switch activation independently of deployment"""
        return self.tracker.allowToggle or (not self.tracker.deployable)

    #--------------------------------------------------------------------------
    @property
    def effectivePower(self)->float:
        """Power rating after multipliers"""
        return self._effective[POWER]

    @property
    def effectiveBandwidth(self)->float:
        """Data rate after multipliers (Mits/s)"""
        return self._effective[BANDWIDTH]

    @property
    def effectiveTransmitConsumption(self)->float:
        """Transmit draw per second after multipliers"""
        return self._effective[CONSUMPTION]

    @property
    def effectiveTelemetryConsumption(self)->float:
        """Telemetry draw per second after multipliers"""
        return self._effective['telemetry']

    ## Special Methods =======================================================#
    def __repr__(self)->str:
        return f"<{self.__class__.__name__} {self.title} at {hex(id(self))}>"

    #--------------------------------------------------------------------------
    def __str__(self)->str:
        """Return multi-line summary of state and effective rates."""
        st = self.state
        return '\n'.join([
            f"{self.title} ({self.antennaType.title()})",
            f" Status:      {self.status.label}",
            f" Enabled:     {st.enabled}",
            f" Deployed:    {st.deployed}",
            f" Queue:       {len(self.queue)} items",
            f" Bandwidth:   {self.effectiveBandwidth:.3f} Mits/s",
            f" Telemetry:   {self.effectiveTelemetryConsumption:.3f}/s",
            f" Transmit:    {self.effectiveTransmitConsumption:.3f}/s",
        ])

    #--------------------------------------------------------------------------
    def __setstate__(self, state:dict)->None:
        """Restore from pickle; a cycle dropped on save comes back idle."""
        self.__dict__.update(state)
        if (self.state.busy and (not self.scheduler.running)):
            self.state.busy = False
            self.state.aborted = False
            self.refreshStatus()

    ## Configuration =========================================================#
    def onLoad(self, node:Mapping[str,Any])->None:
        """
        Load configuration from a host key/value node.

        Missing rates are derived from the stock packet parameters, see
        AntennaConfig.fromDict().
        """
        self._applyConfig(cfg.AntennaConfig.fromDict(node))
        self.refreshStatus()

    #--------------------------------------------------------------------------
    def save(self)->cfg.AntennaConfig:
        """
        Return the persisted configuration.

        Carries activation, deployment, the partial flag and base rates.
        Multipliers are not part of it.
        """
        st = self.state
        c = self.config
        return cfg.AntennaConfig(
            title=c.title,
            antennaType=c.antennaType,
            antennaEnabled=st.enabled,
            deployed=st.deployed,
            xmitIncomplete=st.xmitIncomplete,
            antennaPower=st.basePower,
            telemetryConsumptionRate=st.baseTelemetry,
            transmitConsumptionRate=st.baseConsumption,
            transmitDataRate=st.baseBandwidth,
            packetSize=c.packetSize,
            packetInterval=c.packetInterval,
            packetResourceCost=c.packetResourceCost,
        )

    #--------------------------------------------------------------------------
    def onStart(self, startState:str)->None:
        """Enable resource accounting unless started in NONE or EDITOR."""
        self.shouldConsume = cfg.StartState.inFlight(startState)
        log.debug('%s: started in %s (consume=%s)', self.title, startState,
                  self.shouldConsume)

    ## Multipliers ===========================================================#
    def setMultiplier(self, category:str, name:str, value:float)->float:
        """Upsert a named multiplier. Returns the category's combined."""
        return self.multipliers.set(category, name, value)

    #--------------------------------------------------------------------------
    def removeMultiplier(self, category:str, name:str)->float:
        """Remove a named multiplier. Returns the category's combined."""
        return self.multipliers.remove(category, name)

    ## Capability Checks =====================================================#
    def canComm(self)->bool:
        """Usable and the link budget closes."""
        return self.usable and self.link.linkOk()

    #--------------------------------------------------------------------------
    def canTransmit(self)->bool:
        """Usable, able to carry data, and the link budget closes."""
        return (self.usable and
                (self.antennaType != cfg.INTERNAL) and
                self.link.linkOk())

    #--------------------------------------------------------------------------
    def canCommUnloaded(self,
                        snapshot:Optional[Mapping[str,Any]] = None,
                        )->bool:
        """
        Comm check for an unloaded vessel from its saved module values.


        Parameters
        ----------
        snapshot : mapping, optional
            Persisted module values as stored by the host (strings).


        Returns
        -------
        ok : bool
            Link check alone if there is no snapshot or it lacks
            'antennaEnabled'; otherwise also requires it to read 'true'.
        """

        if ((snapshot is None) or ('antennaEnabled' not in snapshot)):
            return self.link.linkOk()
        enabled = str(snapshot['antennaEnabled']).strip().lower() == 'true'
        return enabled and self.link.linkOk()

    ## Tick Methods ==========================================================#
    def update(self, dt:float)->None:
        """Frame step: advance linked deployment animations."""
        for r in self.tracker.reporters:
            if (hasattr(r, 'update')):
                r.update(dt)

    #--------------------------------------------------------------------------
    def fixedUpdate(self, dt:float)->None:
        """Fixed step: deployment, resource accounting, status."""
        self.tracker.refreshDeployment()
        if (self.shouldConsume):
            self.accountant.processPower(dt)
        self.refreshStatus()

    #--------------------------------------------------------------------------
    def step(self, dt:float)->bool:
        """Resume the transmission cycle. Returns True while it runs."""
        return self.scheduler.step(dt)

    #--------------------------------------------------------------------------
    def tick(self, dt:float)->None:
        """Run update, fixedUpdate and step for one tick."""
        self.update(dt)
        self.fixedUpdate(dt)
        self.step(dt)

    ## Operator Controls =====================================================#
    def queueData(self, items:Iterable[DataItem])->None:
        """Append items to the transmission queue."""
        self.queue.extend(items)

    #--------------------------------------------------------------------------
    def startTransmission(self,
                          callback:Optional[Callable[[],None]] = None,
                          )->bool:
        """
        Begin transmitting the queued items.


        Parameters
        ----------
        callback : callable, optional
            Invoked exactly once when the cycle ends.


        Returns
        -------
        started : bool
            False if the antenna cannot transmit, is busy, or the queue is
            empty.
        """

        if (not self.canTransmit()):
            log.warning('%s: cannot transmit (usable=%s, type=%s)',
                        self.title, self.usable, self.antennaType)
            self.post(f"[{self.title}]: Cannot transmit data")
            return False
        return self.scheduler.begin(callback)

    #--------------------------------------------------------------------------
    def transmitData(self,
                     items:Iterable[DataItem],
                     callback:Optional[Callable[[],None]] = None,
                     )->bool:
        """Queue items and start a cycle if none is running."""
        self.queueData(items)
        if (self.busy):
            return True
        return self.startTransmission(callback)

    #--------------------------------------------------------------------------
    def stopTransmission(self)->None:
        """Operator stop. Same recovery as any other abort."""
        self.scheduler.abort("Stopped by operator")

    #--------------------------------------------------------------------------
    def toggleAntenna(self)->bool:
        """
        Flip activation if the antenna is not coupled to deployment.

        Returns the resulting enabled flag.
        """
        if (not self.canToggle):
            log.info('%s: activation follows deployment', self.title)
            return self.enabled
        self.enabled = not self.enabled
        return self.enabled

    #--------------------------------------------------------------------------
    def transmitIncompleteToggle(self)->bool:
        """Flip the antenna-wide partial delivery permission."""
        self.xmitIncomplete = not self.xmitIncomplete
        return self.xmitIncomplete

    ## Status ================================================================#
    def refreshStatus(self)->str:
        """Project the current state onto label and controls."""
        st = self.state
        return self.status.project(st.enabled, st.deployed,
                                   self.tracker.deployable, st.busy,
                                   self.canToggle)

    #--------------------------------------------------------------------------
    def post(self, message:str)->None:
        """Best-effort operator notification."""
        try:
            self.notifier.notify(message)
        except Exception:
            log.exception('%s: notification failed', self.title)

    #--------------------------------------------------------------------------
    def getInfo(self)->str:
        """
        Return the part info text.

        Lists antenna type, effective power rating, bandwidth, telemetry
        requirement and transmission requirement (or that the antenna cannot
        carry science).
        """

        res = self.pool.resourceName
        internal = (self.antennaType == cfg.INTERNAL)
        text = [
            f"Antenna Type: {self.antennaType.title()}",
            f"Antenna Power Rating: {_printSI(self.effectivePower)}",
        ]
        if (not internal):
            text.extend(["", f"Bandwidth: {self.effectiveBandwidth:.3g} "
                             f"Mits/s"])
        text.extend([
            "",
            f"Active antenna requires: "
            f"{self.effectiveTelemetryConsumption:.3g} {res}/s",
        ])
        if (internal):
            text.append("Cannot transmit Science")
        else:
            text.append(f"Science transmission requires: "
                        f"{self.effectiveTransmitConsumption:.3g} {res}/s")
        return '\n'.join(text)

    ## Helper Methods ========================================================#
    def _applyConfig(self, config:cfg.AntennaConfig)->None:
        """Copy persisted fields into state and refresh effective rates."""
        self.config = config
        self.title = config.title
        self.antennaType = config.antennaType
        st = self.state
        st.enabled = config.antennaEnabled
        st.deployed = config.deployed
        st.xmitIncomplete = config.xmitIncomplete
        st.basePower = config.antennaPower
        st.baseBandwidth = config.transmitDataRate
        st.baseConsumption = config.transmitConsumptionRate
        st.baseTelemetry = config.telemetryConsumptionRate
        # Non-deployable antennas stay deployed across reloads
        if (('tracker' in self.__dict__) and (not self.tracker.deployable)):
            st.deployed = True
        for category in (POWER, BANDWIDTH, CONSUMPTION):
            self._onMultiplierChange(category,
                                     self.multipliers.combined(category))

    #--------------------------------------------------------------------------
    def _onMultiplierChange(self, category:str, combined:float)->None:
        """Recompute the effective rates affected by category."""
        st = self.state
        if (category == POWER):
            self._effective[POWER] = st.basePower * combined
        elif (category == BANDWIDTH):
            self._effective[BANDWIDTH] = st.baseBandwidth * combined
        elif (category == CONSUMPTION):
            self._effective[CONSUMPTION] = st.baseConsumption * combined
            self._effective['telemetry'] = (st.baseTelemetry * combined
                                          * self.settingsFactor)

###############################################################################

def _printSI(value:float, unit:str='')->str:
    """Format value with an SI prefix, three significant digits."""
    for factor,prefix in ((1e9,'G'), (1e6,'M'), (1e3,'k')):
        if (abs(value) >= factor):
            return f"{value/factor:.3g}{prefix}{unit}"
    return f"{value:.3g}{unit}"
