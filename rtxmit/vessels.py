"""
Vessels carrying data transmitters.

A vessel groups the collaborators its antennas share (resource pool, link
budget, science subject registry, completion sink and source container) and
forwards the host tick calls to every antenna in a fixed order.


Classes
-------
Vessel
    Owner of shared collaborators and a list of antennas.


Functions
---------
buildFleet(num, pool, **kwargs)
    Create a list of vessels with sequential ids.
"""

from __future__ import annotations
from typing import Any, Callable, List, Mapping, Optional, Sequence
from rtxmit import config as cfg
from rtxmit import logger
from rtxmit.antenna import DataTransmitter
from rtxmit.deployment import DeployReporter
from rtxmit.link import AlwaysLink, LinkBudget, LinkSchedule
from rtxmit.notify import LogNotifier, Notifier
from rtxmit.resources import Battery, ResourcePool
from rtxmit.science import (CompletionSink, DataContainer, ScienceArchive,
                            SourceContainer, SubjectRegistry)

#-----------------------------------------------------------------------------#

# Global Variables
log = logger.addLog('vessel')

###############################################################################

class Vessel:
    """
    Vessel owning shared transmitter collaborators and its antennas.


    Parameters
    ----------
    callSign : str, optional
        Display identifier. Defaults to 'V' plus the two-digit id.
    pool : ResourcePool, optional
        Shared resource pool (default: Battery(1000.0)).
    link : LinkBudget, optional
        Shared link budget (default: AlwaysLink).
    subjects : SubjectRegistry, optional
        Known science subjects (default: empty registry).
    sink : CompletionSink, optional
        Receiver of delivered data (default: ScienceArchive over subjects).
    container : SourceContainer, optional
        Receiver of returned data (default: DataContainer).
    notifier : Notifier, optional
        Operator notification sink (default: LogNotifier).
    params : TransmitterParams, optional
        Global settings handed to every antenna added.


    Attributes
    ----------
    id : int
        Sequential vessel number, unique within a session.
    antennas : list of DataTransmitter
        Antennas in the order they were added.
    clock : float
        Simulation time of the last tick (seconds).
    """

    _count = 0

    ## Constructor ===========================================================#
    def __init__(self,
                 callSign:Optional[str] = None,
                 pool:Optional[ResourcePool] = None,
                 link:Optional[LinkBudget] = None,
                 subjects:Optional[SubjectRegistry] = None,
                 sink:Optional[CompletionSink] = None,
                 container:Optional[SourceContainer] = None,
                 notifier:Optional[Notifier] = None,
                 params:Optional[cfg.TransmitterParams] = None,
                 )->None:

        Vessel._count += 1
        self.id = Vessel._count
        self._callSign = callSign

        self.pool = pool if (pool is not None) else Battery(1000.0)
        self.link = link if (link is not None) else AlwaysLink()
        self.subjects = (subjects if (subjects is not None)
                         else SubjectRegistry())
        self.sink = (sink if (sink is not None)
                     else ScienceArchive(self.subjects))
        self.container = (container if (container is not None)
                          else DataContainer())
        self.notifier = notifier if (notifier is not None) else LogNotifier()
        self.params = params

        self.antennas:List[DataTransmitter] = []
        self.clock = 0.0

    ## Properties ============================================================#
    @property
    def callSign(self)->str:
        """Vessel identifier"""
        if (self._callSign is None):
            return f'V{self.id:02}'
        return self._callSign

    @callSign.setter
    def callSign(self, identifier:Optional[str])->None:
        self._callSign = identifier

    #--------------------------------------------------------------------------
    @property
    def nAntennas(self)->int:
        """Number of antennas on the vessel"""
        return len(self.antennas)

    ## Special Methods =======================================================#
    def __repr__(self)->str:
        return f"<{self.__class__.__name__} {self.callSign} at {hex(id(self))}>"

    #--------------------------------------------------------------------------
    def __str__(self)->str:
        out = [f'Vessel {self.callSign}',
               f' Pool: {self.pool!r}',
               f' Link: {self.link!r}']
        out.extend(f' {a.title}: {a.status.label}' for a in self.antennas)
        return '\n'.join(out)

    ## Methods ===============================================================#
    def addAntenna(self,
                   config:Optional[cfg.AntennaConfig] = None,
                   reporters:Optional[Sequence[DeployReporter]] = None,
                   inverted:bool = False,
                   allowToggle:bool = True,
                   )->DataTransmitter:
        """
        Create an antenna wired to this vessel's collaborators.


        Parameters
        ----------
        config : AntennaConfig, optional
            Antenna configuration (default: AntennaConfig()).
        reporters : sequence of DeployReporter, optional
            Deployment modules. None makes the antenna non-deployable.
        inverted, allowToggle : bool
            Deployment polarity and activation coupling, see
            DeploymentTracker.


        Returns
        -------
        antenna : DataTransmitter
            The new antenna, also appended to `antennas`.
        """

        antenna = DataTransmitter(config,
                                  vessel=self,
                                  pool=self.pool,
                                  link=self.link,
                                  resolver=self.subjects,
                                  sink=self.sink,
                                  container=self.container,
                                  notifier=self.notifier,
                                  reporters=reporters,
                                  inverted=inverted,
                                  allowToggle=allowToggle,
                                  params=self.params)
        self.antennas.append(antenna)
        log.info('%s: added %s (%s)', self.callSign, antenna.title,
                 antenna.antennaType)
        return antenna

    #--------------------------------------------------------------------------
    def loadAntenna(self, node:Mapping[str,Any], **kwargs)->DataTransmitter:
        """Add an antenna configured from a host key/value node."""
        return self.addAntenna(cfg.AntennaConfig.fromDict(node), **kwargs)

    #--------------------------------------------------------------------------
    def onStart(self, startState:str)->None:
        """Start every antenna in startState."""
        for a in self.antennas:
            a.onStart(startState)

    #--------------------------------------------------------------------------
    def tick(self, clock:float, dt:float)->None:
        """
        Advance the vessel by one fixed step.

        Order: link clock, pool recharge, then for all antennas update(),
        fixedUpdate() and step() in three passes.
        """

        self.clock = clock
        if isinstance(self.link, LinkSchedule):
            self.link.time = clock
        self.pool.recharge(dt)

        for a in self.antennas:
            a.update(dt)
        for a in self.antennas:
            a.fixedUpdate(dt)
        for a in self.antennas:
            a.step(dt)

    #--------------------------------------------------------------------------
    def transmitAll(self, callback:Optional[Callable[[],None]] = None)->int:
        """
        Queue every item in the container on the first antenna able to
        transmit and start it.

        Returns the number of items queued.
        """

        for a in self.antennas:
            if (a.canTransmit() and (not a.busy)):
                items = self.container.takeAll()
                if (not items):
                    return 0
                a.transmitData(items, callback)
                return len(items)
        log.info('%s: no antenna available to transmit', self.callSign)
        return 0

###############################################################################

def buildFleet(num:int, pool:Callable[[],ResourcePool] = None,
               **kwargs)->List[Vessel]:
    """
    Create a list of vessels.


    Parameters
    ----------
    num : int
        Number of vessels.
    pool : callable, optional
        Factory returning a fresh resource pool for each vessel.
    **kwargs : dict
        Keyword arguments passed to every Vessel constructor.


    Returns
    -------
    fleet : list of Vessel
        Vessels with sequential ids.


    Examples
    --------
    >>> fleet = buildFleet(3, pool=lambda: Battery(200.0, rechargeRate=1.0))
    >>> [v.pool.capacity for v in fleet]
    [200.0, 200.0, 200.0]
    """

    fleet = []
    for _ in range(num):
        p = pool() if (pool is not None) else None
        fleet.append(Vessel(pool=p, **kwargs))
    return fleet
