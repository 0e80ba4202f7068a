"""
Science data items and the collaborators a transmission hands them to.

A data item belongs to the transmission queue while waiting or in flight. At
the end of a cycle it leaves the queue in exactly one of two ways: delivered
to a completion sink (fully or partially), or returned untouched to a source
container after an abort.


Classes
-------
**Data**
    DataItem
        Science payload waiting for or undergoing transmission.
    TransmissionQueue
        FIFO of data items; the engine only touches the head.

**Collaborator Interfaces**
    TransferContext
        Receives streamed chunks for one item.
    SubjectResolver
        Looks up the transfer context for a subject id.
    CompletionSink
        Receives delivered items.
    SourceContainer
        Takes back items from aborted transmissions.

**Collaborator Implementations**
    StreamContext
        Transfer context accumulating streamed data.
    SubjectRegistry
        Resolver over a table of known subjects.
    ScienceArchive
        Completion sink recording deliveries and their science value.
    DataContainer
        Source container holding returned items.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple
from rtxmit import logger

#-----------------------------------------------------------------------------#

# Global Variables
log = logger.addLog('sci')

###############################################################################

@dataclass(eq=False)
class DataItem:
    """
    Science payload queued for transmission.

    Attributes
    ----------
    title : str
        Display name.
    subjectId : str
        Science subject identifier resolved at the start of transmission.
    size : float
        Amount of data to move (Mits).
    baseTransmitValue : float
        Fraction of science value recovered by transmission.
    transmitBonus : float
        Additional multiplier on the transmit value.
    triggered : bool
        Set once transmission has been attempted on the item.
    allowIncomplete : bool, optional
        Per-item partial delivery permission. None defers to the antenna's
        xmitIncomplete flag.

    Notes
    -----
    Compared by identity: the engine references items, never copies them.
    """

    title: str
    subjectId: str
    size: float
    baseTransmitValue: float = 1.0
    transmitBonus: float = 1.0
    triggered: bool = False
    allowIncomplete: Optional[bool] = None

###############################################################################

class TransmissionQueue:
    """
    FIFO of data items awaiting transmission.

    Parameters
    ----------
    items : iterable of DataItem, optional
        Initial queue contents in order.
    """

    def __init__(self, items:Optional[Iterable[DataItem]]=None)->None:
        self._items:List[DataItem] = list(items or [])

    def __len__(self)->int:
        return len(self._items)

    def __iter__(self)->Iterator[DataItem]:
        return iter(list(self._items))

    def __getitem__(self, i:int)->DataItem:
        return self._items[i]

    def __repr__(self)->str:
        return f"<{self.__class__.__name__} {len(self._items)} items>"

    @property
    def head(self)->Optional[DataItem]:
        """First item in the queue, None if empty"""
        return self._items[0] if self._items else None

    def enqueue(self, item:DataItem)->None:
        self._items.append(item)

    def extend(self, items:Iterable[DataItem])->None:
        self._items.extend(items)

    def popHead(self)->DataItem:
        """Remove and return the head item."""
        return self._items.pop(0)

    def drain(self)->List[DataItem]:
        """Remove and return all items in order."""
        items, self._items = self._items, []
        return items

###############################################################################

class TransferContext(ABC):
    """Destination-side stream for one data item."""

    @abstractmethod
    def stream(self, amount:float, destination:Any)->None:
        """Push a chunk of data. Fire-and-forget."""

###############################################################################

class SubjectResolver(ABC):
    """Resolver of science subjects to transfer contexts."""

    @abstractmethod
    def resolve(self, subjectId:str)->Optional[TransferContext]:
        """Return a transfer context for subjectId, None if unknown."""

###############################################################################

class CompletionSink(ABC):
    """Receiver of delivered data items."""

    @abstractmethod
    def deliver(self, item:DataItem, isPartial:bool)->None:
        """Accept a fully (isPartial=False) or partially delivered item."""

###############################################################################

class SourceContainer(ABC):
    """Container taking back data from aborted transmissions."""

    @abstractmethod
    def returnItem(self, item:DataItem)->None:
        """Store an unsent item."""

###############################################################################

class StreamContext(TransferContext):
    """
    Transfer context accumulating the streamed amount.

    Attributes
    ----------
    subject : str
        Resolved subject title.
    received : float
        Total streamed so far.
    chunks : int
        Number of stream() calls.
    destination : Any
        Destination given on the last stream() call.
    """

    def __init__(self, subject:str)->None:
        self.subject = subject
        self.received = 0.0
        self.chunks = 0
        self.destination = None

    def __repr__(self)->str:
        return (f"<{self.__class__.__name__} {self.subject} "
                f"{self.received:.2f}>")

    def stream(self, amount:float, destination:Any)->None:
        self.received += amount
        self.chunks += 1
        self.destination = destination

###############################################################################

class SubjectRegistry(SubjectResolver):
    """
    Resolver over a table of known science subjects.


    Parameters
    ----------
    subjects : dict, optional
        Maps subject id to subject title.


    Attributes
    ----------
    contexts : dict
        Every context handed out, keyed by subject id (last one wins).
    """

    def __init__(self, subjects:Optional[Dict[str,str]]=None)->None:
        self.subjects = dict(subjects or {})
        self.contexts:Dict[str,StreamContext] = {}

    def add(self, subjectId:str, title:Optional[str]=None)->None:
        self.subjects[subjectId] = title if title else subjectId

    def resolve(self, subjectId:str)->Optional[TransferContext]:
        title = self.subjects.get(subjectId)
        if (title is None):
            log.warning('Unknown science subject %s', subjectId)
            return None
        context = StreamContext(title)
        self.contexts[subjectId] = context
        return context

###############################################################################

class ScienceArchive(CompletionSink):
    """
    Completion sink recording every delivery.

    Attributes
    ----------
    deliveries : list of (DataItem, bool)
        Delivered items with their partial flag, in delivery order.
    science : float
        Accumulated science value, size * baseTransmitValue * transmitBonus
        for full deliveries, scaled by the received fraction for partial
        ones when a resolver context is known.
    """

    def __init__(self, resolver:Optional[SubjectRegistry]=None)->None:
        self.resolver = resolver
        self.deliveries:List[Tuple[DataItem,bool]] = []
        self.science = 0.0

    def __len__(self)->int:
        return len(self.deliveries)

    def deliver(self, item:DataItem, isPartial:bool)->None:
        self.deliveries.append((item, isPartial))
        fraction = 1.0
        if (isPartial):
            fraction = self._receivedFraction(item)
        value = (item.size * item.baseTransmitValue * item.transmitBonus *
                 fraction)
        self.science += value
        log.info('Delivered %s%s (%.2f science)', item.title,
                 ' [partial]' if isPartial else '', value)

    def _receivedFraction(self, item:DataItem)->float:
        if ((self.resolver is None) or (item.size <= 0)):
            return 0.0
        context = self.resolver.contexts.get(item.subjectId)
        if (context is None):
            return 0.0
        return min(context.received / item.size, 1.0)

###############################################################################

class DataContainer(SourceContainer):
    """Source container holding items returned after an abort."""

    def __init__(self)->None:
        self.items:List[DataItem] = []

    def __len__(self)->int:
        return len(self.items)

    def __iter__(self)->Iterator[DataItem]:
        return iter(self.items)

    def returnItem(self, item:DataItem)->None:
        self.items.append(item)
        log.info('Returned %s to container', item.title)

    def takeAll(self)->List[DataItem]:
        """Empty the container and return its items."""
        items, self.items = self.items, []
        return items
