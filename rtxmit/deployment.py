"""
Deployment reporting and admission tracking for antennas.

Deployable antennas are only usable while extended. Linked deployment modules
(animations, extendable booms) report a scalar extension in [0, 1]; the
tracker reduces them to a single deployed flag with hysteresis and, unless the
antenna allows independent toggling, couples activation to deployment.


Classes
-------
DeployReporter
    Abstract reporter of a deployment scalar.
FixedReporter
    Reporter holding a constant, externally set scalar.
AnimationReporter
    Reporter driven by a deploy/retract animation advanced each frame.
DeploymentTracker
    Derives the deployed flag from linked reporters.


Notes
-----
The reported scalar is the minimum across reporters, so the antenna is only
deployed once every linked module is fully extended.

.. code-block:: none

    scalar           inverted=False    inverted=True
    ------           --------------    -------------
    > 0.9            deployed          retracted
    0.1 to 0.9       unchanged         unchanged
    < 0.1            retracted         deployed
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, TYPE_CHECKING
if (TYPE_CHECKING):
    from rtxmit.antenna import AntennaState
import numpy as np
from rtxmit import logger

#-----------------------------------------------------------------------------#

# Hysteresis band limits
DEPLOYED_HIGH = 0.9
DEPLOYED_LOW = 0.1

# Global Variables
log = logger.addLog('deploy')

###############################################################################

class DeployReporter(ABC):
    """Abstract reporter of a deployment scalar in [0, 1]."""

    @abstractmethod
    def scalar(self)->float:
        """
        Return the current extension.

        Returns
        -------
        scalar : float
            0.0 fully retracted, 1.0 fully extended.
        """

###############################################################################

class FixedReporter(DeployReporter):
    """Reporter returning a value set directly by its owner."""

    def __init__(self, value:float=0.0)->None:
        self.value = value

    @property
    def value(self)->float:
        """Reported scalar, clipped to [0, 1]"""
        return self._value

    @value.setter
    def value(self, v:float)->None:
        self._value = float(np.clip(v, 0.0, 1.0))

    def scalar(self)->float:
        return self._value

###############################################################################

class AnimationReporter(DeployReporter):
    """
    Reporter following a linear deploy/retract animation.


    Parameters
    ----------
    duration : float, default=2.0
        Seconds for a full deploy or retract stroke.
    position : float, default=0.0
        Initial extension.


    Methods
    -------
    deploy()
        Start extending toward 1.0.
    retract()
        Start retracting toward 0.0.
    update(dt)
        Advance the animation by dt seconds.
    """

    def __init__(self, duration:float=2.0, position:float=0.0)->None:
        if (duration <= 0):
            msg = "Animation duration must be greater than zero"
            log.critical(msg)
            raise ValueError(msg)
        self.duration = duration
        self.position = float(np.clip(position, 0.0, 1.0))
        self.target = self.position

    def __repr__(self)->str:
        return (f"<{self.__class__.__name__} {self.position:.2f}"
                f"->{self.target:.2f}>")

    def deploy(self)->None:
        self.target = 1.0

    def retract(self)->None:
        self.target = 0.0

    @property
    def moving(self)->bool:
        """True while the animation has not reached its target"""
        return self.position != self.target

    def update(self, dt:float)->None:
        step = dt / self.duration
        delta = float(np.clip(self.target - self.position, -step, step))
        self.position = float(np.clip(self.position + delta, 0.0, 1.0))

    def scalar(self)->float:
        return self.position

###############################################################################

class DeploymentTracker:
    """
    Derives an antenna's deployed flag from linked deployment reporters.

    Parameters
    ----------
    state : AntennaState
        Antenna state whose `deployed` (and, when coupled, `enabled`) flags
        this tracker maintains.
    reporters : sequence of DeployReporter, optional
        Linked deployment modules. None or empty makes the antenna
        non-deployable (always deployed).
    inverted : bool, default=False
        Reverse scalar polarity (deployed when retracted).
    allowToggle : bool, default=True
        If False, activation follows deployment on every transition.

    Attributes
    ----------
    deployable : bool
        Whether any reporter is linked. Fixed at construction.
    """

    ## Constructor ===========================================================#
    def __init__(self,
                 state:AntennaState,
                 reporters:Optional[Sequence[DeployReporter]] = None,
                 inverted:bool = False,
                 allowToggle:bool = True,
                 )->None:
        self.state = state
        self.reporters:List[DeployReporter] = list(reporters or [])
        self.inverted = inverted
        self.allowToggle = allowToggle
        self._deployable = bool(self.reporters)
        if (not self._deployable):
            self.state.deployed = True

    ## Properties ============================================================#
    @property
    def deployable(self)->bool:
        """Whether the antenna has linked deployment modules"""
        return self._deployable

    ## Methods ===============================================================#
    def scalar(self)->float:
        """Minimum extension across all reporters (1.0 if none)."""
        if (not self.reporters):
            return 1.0
        return float(min(r.scalar() for r in self.reporters))

    #--------------------------------------------------------------------------
    def refreshDeployment(self)->bool:
        """
        Update the deployed flag from the reporters.


        Returns
        -------
        changed : bool
            True if deployed flipped on this call.


        Notes
        -----
        - Non-deployable antennas stay deployed.
        - Scalars inside the hysteresis band leave the flag untouched.
        - On a transition without allowToggle, enabled is forced to the new
          deployed value.
        """

        if (not self._deployable):
            return False

        s = self.scalar()
        if (self.inverted):
            if (s < DEPLOYED_LOW):
                deployed = True
            elif (s > DEPLOYED_HIGH):
                deployed = False
            else:
                return False
        else:
            if (s > DEPLOYED_HIGH):
                deployed = True
            elif (s < DEPLOYED_LOW):
                deployed = False
            else:
                return False

        if (deployed == self.state.deployed):
            return False

        self.state.deployed = deployed
        log.info('Antenna %s', 'deployed' if deployed else 'retracted')
        if (not self.allowToggle):
            self.state.enabled = deployed
        return True
