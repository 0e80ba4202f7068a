"""
Status label and control visibility of a data transmitter.


Classes
-------
StatusProjector
    Holds the displayed label and the visibility of operator controls.


Functions
---------
statusLabel(enabled, deployed, deployable, busy)
    Idle-time label for a given antenna state.


Notes
-----
While a cycle runs, the scheduler owns the label ("Transmitting (P%)") and
project() leaves it alone; the controls are still updated.
"""

from typing import Dict
from rtxmit import logger

#-----------------------------------------------------------------------------#

# Labels
IDLE = 'Idle'
DISABLED = 'Disabled'
RETRACTED = 'Retracted'

# Operator controls
START = 'StartTransmission'
STOP = 'StopTransmission'
ENABLE = 'EnableAntenna'
DISABLE = 'DisableAntenna'
CONTROLS = (START, STOP, ENABLE, DISABLE)

# Global Variables
log = logger.addLog('status')

###############################################################################

def statusLabel(enabled:bool,
                deployed:bool,
                deployable:bool,
                busy:bool,
                )->str:
    """
    Return the status label for an antenna state.


    Parameters
    ----------
    enabled, deployed, deployable, busy : bool
        Antenna state flags.


    Returns
    -------
    label : str
        'Transmitting' while busy, 'Retracted' for an undeployed deployable
        antenna, 'Disabled' when switched off, 'Idle' otherwise.
    """

    if (busy):
        return 'Transmitting'
    if (deployable and (not deployed)):
        return RETRACTED
    if (not enabled):
        return DISABLED
    return IDLE

###############################################################################

class StatusProjector:
    """
    Displayed status of one antenna.

    Attributes
    ----------
    label : str
        Current status text.
    controls : dict
        Visibility of each operator control, keyed by CONTROLS names.
    """

    def __init__(self)->None:
        self.label = IDLE
        self.controls:Dict[str,bool] = {c:False for c in CONTROLS}

    def __repr__(self)->str:
        shown = [c for c,v in self.controls.items() if v]
        return f"<{self.__class__.__name__} '{self.label}' {shown}>"

    def project(self,
                enabled:bool,
                deployed:bool,
                deployable:bool,
                busy:bool,
                canToggle:bool = True,
                )->str:
        """
        Recompute label and control visibility.


        Parameters
        ----------
        enabled, deployed, deployable, busy : bool
            Antenna state flags.
        canToggle : bool, default=True
            Whether the operator may switch the antenna on and off.


        Returns
        -------
        label : str
            The label after projection.
        """

        usable = enabled and deployed
        self.controls[START] = usable and (not busy)
        self.controls[STOP] = busy
        self.controls[ENABLE] = canToggle and (not enabled)
        self.controls[DISABLE] = canToggle and enabled

        if (not busy):
            label = statusLabel(enabled, deployed, deployable, busy)
            if (label != self.label):
                log.debug('Status %s -> %s', self.label, label)
            self.label = label
        return self.label
