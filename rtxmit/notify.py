"""
Operator notification sinks.

Antennas post short screen messages (transmission started, progress, completed,
shutdown notices). Delivery is best-effort: the engine never waits on a sink
and a failing sink never changes engine state.


Classes
-------
Notifier
    Abstract notification sink.
LogNotifier
    Writes notifications to the transmission-event logger.
MessageBoard
    Keeps notifications in memory and also logs them.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List, Tuple
from rtxmit import logger

#-----------------------------------------------------------------------------#

# Global Variables
log = logger.setupXmit(file=False)

###############################################################################

class Notifier(ABC):
    """Abstract notification sink."""

    @abstractmethod
    def notify(self, message:str)->None:
        """Post a message for the operator."""

###############################################################################

class LogNotifier(Notifier):
    """Notification sink writing to the transmission-event logger."""

    def notify(self, message:str)->None:
        log.info(message)

###############################################################################

class MessageBoard(LogNotifier):
    """
    Notification sink keeping a history of posted messages.

    Attributes
    ----------
    messages : list of (str, str)
        (simTime, message) pairs in posting order.
    """

    def __init__(self)->None:
        self.messages:List[Tuple[str,str]] = []

    def __len__(self)->int:
        return len(self.messages)

    def notify(self, message:str)->None:
        self.messages.append((logger.simTime, message))
        super().notify(message)

    def texts(self)->List[str]:
        """Posted messages without timestamps."""
        return [m for _,m in self.messages]
