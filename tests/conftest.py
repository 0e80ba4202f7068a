import matplotlib
matplotlib.use('Agg')

from typing import List, Tuple
import pytest
from rtxmit import config as cfg
from rtxmit.antenna import DataTransmitter
from rtxmit.link import AlwaysLink
from rtxmit.notify import MessageBoard, Notifier
from rtxmit.resources import SATISFACTION, InfinitePool, ResourcePool
from rtxmit.science import (CompletionSink, DataContainer, DataItem,
                            ScienceArchive, SourceContainer, SubjectRegistry)

###############################################################################

class FractionPool(ResourcePool):
    """Pool that always supplies the same fraction and records requests."""

    def __init__(self, fraction:float=1.0)->None:
        super().__init__()
        self.fraction = fraction
        self.requests:List[float] = []

    def tryConsume(self, amount:float, threshold:float=SATISFACTION)->float:
        self.requests.append(amount)
        if (self.fraction < threshold):
            self.errorMsg = f"not enough {self.resourceName}"
        return self.fraction

class FailingNotifier(Notifier):
    def __init__(self)->None:
        self.calls = 0

    def notify(self, message:str)->None:
        self.calls += 1
        raise RuntimeError('display unavailable')

class FailingSink(CompletionSink):
    def deliver(self, item:DataItem, isPartial:bool)->None:
        raise RuntimeError('archive full')

class FailingContainer(SourceContainer):
    def returnItem(self, item:DataItem)->None:
        raise RuntimeError('container full')

class RecordingSink(CompletionSink):
    def __init__(self)->None:
        self.deliveries:List[Tuple[DataItem,bool]] = []

    def deliver(self, item:DataItem, isPartial:bool)->None:
        self.deliveries.append((item, isPartial))

###############################################################################

def runTicks(antenna:DataTransmitter, n:int, dt:float=1.0)->None:
    """Advance antenna by n host ticks."""
    for _ in range(n):
        antenna.tick(dt)

###############################################################################

@pytest.fixture
def board()->MessageBoard:
    return MessageBoard()

@pytest.fixture
def subjects()->SubjectRegistry:
    return SubjectRegistry({'S1': 'Crew Report',
                            'S2': 'Temperature Scan',
                            'S3': 'Seismic Scan'})

@pytest.fixture
def makeAntenna(board, subjects):
    """
    Factory for started antennas with bandwidth 10 per second.

    Keyword arguments override the collaborators or the AntennaConfig
    fields given in `config`.
    """

    def factory(config:dict=None, startState=cfg.StartState.FLYING,
                **kwargs)->DataTransmitter:
        values = dict(title='Comm16',
                      transmitDataRate=10.0,
                      transmitConsumptionRate=5.0,
                      telemetryConsumptionRate=0.5)
        values.update(config or {})
        kwargs.setdefault('pool', InfinitePool())
        kwargs.setdefault('link', AlwaysLink())
        kwargs.setdefault('resolver', subjects)
        kwargs.setdefault('sink', ScienceArchive(subjects))
        kwargs.setdefault('container', DataContainer())
        kwargs.setdefault('notifier', board)
        antenna = DataTransmitter(cfg.AntennaConfig(**values), **kwargs)
        antenna.onStart(startState)
        return antenna

    return factory
