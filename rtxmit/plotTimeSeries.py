"""
Visualization functions for transmitter simulation data.

Plots the per-antenna time series recorded by the Simulator: activation and
deployment flags, transmission activity and progress, data moved, and the
level of the shared resource pool.


Functions
---------
plotAntennaStates(simTime, simData, title, figNo, filename)
    Plot state flags, progress, data through and pool level vs time.
plotFleetPool(simTime, simData, titles, figNo, filename)
    Plot the pool level seen by every antenna on one axis.


Utility Functions
-----------------
cm2inch(value)
    Convert centimeters to inches for figure sizing.


Notes
-----
Column layout of simData (last axis), see simulator.DATA_COLUMNS:

.. code-block:: none

    0 enabled   1 deployed   2 busy   3 progress   4 dataThrough   5 pool

Default plot parameters (figure size, DPI, legend size) are defined as
module-level globals and can be modified before calling plot functions.
"""

from typing import List, Optional
from numpy.typing import NDArray
import matplotlib.pyplot as plt
import numpy as np
from rtxmit import logger

#-----------------------------------------------------------------------------#

# Type Aliases
NPFltArr = NDArray[np.float64]

# Global Variables
log = logger.addLog('pltTS')

# Plot Parameters
legendSize = 10         # legend size
figSize1 = [25, 13]     # figure1 size in cm
figSize2 = [25, 10]     # figure2 size in cm
dpiValue = 150          # figure dpi value

###############################################################################

def cm2inch(value:float)->float:
    """
    Convert centimeters to inches for matplotlib figure sizing.


    Parameters
    ----------
    value : float
        Length in centimeters.


    Returns
    -------
    inches : float
        Length in inches.
    """

    return value / 2.54

###############################################################################

def plotAntennaStates(simTime:NPFltArr,
                      simData:NPFltArr,
                      title:str,
                      figNo:int,
                      filename:Optional[str] = None,
                      )->plt.Figure:
    """
    Plot the recorded states of one antenna versus time.


    Parameters
    ----------
    simTime : ndarray, shape (N+1, 1)
        Time vector in seconds. Includes t=0.
    simData : ndarray, shape (N+1, 6)
        Recorded data of a single antenna.
    title : str
        Antenna title for the figure heading.
    figNo : int
        Figure number.
    filename : str, optional
        If given, the figure is saved to this path (png).


    Returns
    -------
    fig : matplotlib.figure.Figure
        The figure.


    Notes
    -----
    Creates 4 subplots:

    1. Enabled and deployed flags (step plot, offset for readability)
    2. Busy flag and transmission progress of the head item
    3. Data streamed for the head item (Mits)
    4. Resource pool level
    """

    t = simTime[:, 0] if (simTime.ndim > 1) else simTime

    fig = plt.figure(figNo,
                     figsize=(cm2inch(figSize1[0]), cm2inch(figSize1[1])),
                     dpi=dpiValue)
    fig.suptitle(f'Antenna {title}')

    ax = fig.add_subplot(2, 2, 1)
    ax.step(t, simData[:, 0] + 0.02, where='post')
    ax.step(t, simData[:, 1] - 0.02, where='post')
    ax.set_ylim(-0.1, 1.1)
    ax.legend(["Enabled", "Deployed"], fontsize=legendSize)
    ax.grid()

    ax = fig.add_subplot(2, 2, 2)
    ax.step(t, simData[:, 2], where='post')
    ax.plot(t, simData[:, 3])
    ax.set_ylim(-0.1, 1.1)
    ax.legend(["Busy", "Progress"], fontsize=legendSize)
    ax.grid()

    ax = fig.add_subplot(2, 2, 3)
    ax.plot(t, simData[:, 4])
    ax.set_xlabel("Time (s)")
    ax.legend(["Data through (Mits)"], fontsize=legendSize)
    ax.grid()

    ax = fig.add_subplot(2, 2, 4)
    pool = simData[:, 5]
    if (np.all(np.isfinite(pool))):
        ax.plot(t, pool)
    else:
        log.debug('%s: pool level not tracked, skipping', title)
    ax.set_xlabel("Time (s)")
    ax.legend(["Pool level"], fontsize=legendSize)
    ax.grid()

    fig.tight_layout()
    if (filename is not None):
        fig.savefig(filename)
        log.info('Saved antenna plot: %s', filename)
    return fig

###############################################################################

def plotFleetPool(simTime:NPFltArr,
                  simData:NPFltArr,
                  titles:List[str],
                  figNo:int,
                  filename:Optional[str] = None,
                  )->plt.Figure:
    """
    Plot the pool level recorded for every antenna.


    Parameters
    ----------
    simTime : ndarray, shape (N+1, 1)
        Time vector in seconds.
    simData : ndarray, shape (nAntennas, N+1, 6)
        Recorded data of all antennas.
    titles : list of str
        Legend entry per antenna.
    figNo : int
        Figure number.
    filename : str, optional
        If given, the figure is saved to this path (png).
    """

    t = simTime[:, 0] if (simTime.ndim > 1) else simTime

    fig = plt.figure(figNo,
                     figsize=(cm2inch(figSize2[0]), cm2inch(figSize2[1])),
                     dpi=dpiValue)
    ax = fig.add_subplot(1, 1, 1)
    for i in range(simData.shape[0]):
        ax.plot(t, simData[i, :, 5])
    ax.set_title("Resource pool level", fontsize=12)
    ax.set_xlabel("Time (s)")
    ax.legend(titles, fontsize=legendSize)
    ax.grid()

    if (filename is not None):
        fig.savefig(filename)
        log.info('Saved pool plot: %s', filename)
    return fig
