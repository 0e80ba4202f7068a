"""
Fixed-step simulation driver for vessels carrying data transmitters.

Provides the Simulator class, which advances a set of vessels through time,
fires scheduled operator actions, records per-antenna time series and produces
the summary log and plots.


Classes
-------
Simulator
    Main simulation orchestrator.


Functions
---------
save(simulation, filename, format)
    Save Simulator object to file (pickle format).
load(filename, format)
    Load Simulator object from file.


Notes
-----
Per tick i (time t = i * sampleTime):

1. logger.simTime is set to t.
2. Scheduled actions with time <= t are fired.
3. Antenna data is recorded in simData[:, i, :].
4. Every vessel ticks: update, fixedUpdate, step for all its antennas.
"""

from typing import Callable, List, Optional, Tuple
from numpy.typing import NDArray
import os
import importlib
import inspect
import time
import datetime
import pickle
import matplotlib.pyplot as plt
import numpy as np
from rtxmit import config as cfg
from rtxmit import notify
from rtxmit import plotTimeSeries as pltTS
from rtxmit import logger
from rtxmit.antenna import DataTransmitter
from rtxmit.vessels import Vessel

#-----------------------------------------------------------------------------#

# Type Aliases
NPFltArr = NDArray[np.float64]

# Recorded columns per antenna
DATA_COLUMNS = ('enabled', 'deployed', 'busy', 'progress', 'dataThrough',
                'pool')

###############################################################################

class Simulator:
    """
    Main simulation coordinator for vessels carrying data transmitters.


    Parameters
    ----------
    name : str, default='Simulation'
        Simulation title. Used for output directory and file naming.
    sampleTime : float, default=0.1
        Iteration time step in seconds.
    N : int, default=600
        Number of simulation iterations.
    vessels : list of Vessel, optional
        Vessels to simulate. Can be set after initialization.
    startState : str, default=StartState.FLYING
        Start state passed to every antenna when the simulation starts.
    logging : str, default='all'
        Main logger configuration. Options: 'all', 'none', 'noout', 'nofile',
        'quiet', 'onlyfile', 'onlyconsole'.
    xmitLogging : str, default='all'
        Transmission-event logger configuration. Options: 'all', 'none',
        'noout', 'nofile', 'quiet'.
    outRoot : str, optional
        Directory that receives the simulation output folder. Defaults to
        outputs/<script name>/ in the project directory.
    **kwargs : dict
        Additional attributes to set on simulator instance.


    Attributes
    ----------
    **Time Management:**

        sampleTime : float
            Simulation time step (seconds per iteration).
        N : int
            Number of simulation iterations.
        runTime : float
            Total simulation time in seconds. Equal to N * sampleTime.
            Setting any of these three updates the others.
        simTime : ndarray, shape (N+1, 1)
            Time vector. Includes t=0.
        initTime : str
            Timestamp when simulator was created (YYMMDD-HHMMSS format).

    **Vessels:**

        vessels : list of Vessel
            Simulated vessels.
        antennas : list of DataTransmitter (read-only)
            All antennas of all vessels, in vessel order.
        nAntennas : int (read-only)
            Number of antennas.

    **Data:**

        simData : ndarray, shape (nAntennas, N+1, 6)
            Recorded antenna data, columns as in DATA_COLUMNS.

    **Output Files:**

        outDir : str
            Output directory, set at initialization from `name`.
        saveFile : str
            Base path for saved simulation and plot files.
        logFile : str
            Main log file path.
        xmitFile : str
            Transmission-event log file path.


    Methods
    -------
    run(plot)
        Simulate, log a summary and optionally plot.
    simulate()
        Execute the iteration loop and return recorded data.
    schedule(t, action)
        Register an operator action to fire at simulation time t.
    plot(show)
        Plot the recorded time series.
    """

    ## Constructor ===========================================================#
    def __init__(self,
                 name:str = 'Simulation',
                 sampleTime:float = 0.1,
                 N:int = 600,
                 vessels:Optional[List[Vessel]] = None,
                 startState:str = cfg.StartState.FLYING,
                 logging:str = 'all',
                 xmitLogging:str = 'all',
                 outRoot:Optional[str] = None,
                 **kwargs,
                 )->None:

        ## Time Stamp
        init_time = datetime.datetime.now()
        self.initTime = init_time.strftime("%y%m%d-%H%M%S")

        ## Data
        self.simData = None                         # data generated by the sim
        self.simTime = None                         # simulation times array

        ## Simulation
        self._outRoot = outRoot                     # output root directory
        self.name = name                            # simulation title
        self.sampleTime = sampleTime                # iteration time step (sec)
        self.N = N                                  # number of iterations
        self.startState = startState                # antenna start state

        ## Objects
        self.vessels = vessels                      # vessels list
        self._events:List[Tuple[float,Callable[[],None]]] = []

        ## User Keyword Attributes
        for key,value in kwargs.items():
            if key not in {                         # computed attributes
                'simTime',
                'simData',
            }:
                setattr(self, key, value)

        ## Logging
        self.log = None                             # main logger
        self.logging = logging                      # logging setting
        self.xmitLogging = xmitLogging              # event logging setting

    ## Properties ============================================================#
    @property
    def name(self)->str:
        """Get simulation name."""
        return self._name

    @name.setter
    def name(self, name:str)->None:
        """Set the simulation name. Can only be set at initialization."""
        if ('_name' in self.__dict__):
            self.log.warning("Cannot rename simulation. Attribute must be " +
                             "set at initialization.")
            return
        baseName = f"{name}_{self.initTime}"
        self._outDir = self._makeSaveDir(baseName)
        self._saveFile = os.path.join(self.outDir, baseName)
        self._name = name

    #--------------------------------------------------------------------------
    @property
    def sampleTime(self)->float:
        """Get simulation iteration time step in seconds."""
        return self._sampleTime

    @sampleTime.setter
    def sampleTime(self, h:float)->None:
        """Set simulation time step. Updates runTime if N is already set."""
        if (h <= 0):
            msg = "sampleTime must be greater than zero"
            if (self.__dict__.get('log') is not None):
                self.log.critical(msg)
            raise ValueError(msg)
        self._sampleTime = h
        if ('_N' in self.__dict__):
            self.N = self.N

    #--------------------------------------------------------------------------
    @property
    def N(self)->int:
        """Get number of simulation iterations."""
        return self._N

    @N.setter
    def N(self, n:int)->None:
        """Set number of iterations and compute simTime and runTime."""
        self._N = n
        self.simTime = (np.arange(n+1, dtype=float) *
                        self.sampleTime)[:, None]
        self._runTime = self.simTime[-1][0]

    #--------------------------------------------------------------------------
    @property
    def runTime(self)->float:
        """Get total simulation time in seconds."""
        return self._runTime

    @runTime.setter
    def runTime(self, n:float)->None:
        """Set total simulation time. Indirectly calls the N setter."""
        self.N = int(round(n/self.sampleTime))

    #--------------------------------------------------------------------------
    @property
    def vessels(self)->List[Vessel]:
        """Get list of simulation vessels."""
        return self._vessels

    @vessels.setter
    def vessels(self, vessels:Optional[List[Vessel]])->None:
        """Set vessel list."""
        self._vessels = list(vessels) if (vessels is not None) else []

    #--------------------------------------------------------------------------
    @property
    def antennas(self)->List[DataTransmitter]:
        """Get all antennas of all vessels."""
        return [a for v in self._vessels for a in v.antennas]

    #--------------------------------------------------------------------------
    @property
    def nAntennas(self)->int:
        """Get number of antennas in simulation."""
        return sum(v.nAntennas for v in self._vessels)

    #--------------------------------------------------------------------------
    @property
    def antennaTitles(self)->List[str]:
        """Get '<callSign>/<antenna title>' for every antenna."""
        return [f"{v.callSign}/{a.title}"
                for v in self._vessels for a in v.antennas]

    #--------------------------------------------------------------------------
    @property
    def outDir(self)->str:
        """Get output directory path."""
        return self._outDir

    @outDir.setter
    def outDir(self, outDir:str)->None:
        """Attempt to set the output directory for the simulation."""
        self.log.warning("Cannot set output directory directly. Attribute is "+
                         "set at initialization by the 'name' attribute.")

    #--------------------------------------------------------------------------
    @property
    def saveFile(self)->str:
        """Get save file path."""
        return self._saveFile

    #--------------------------------------------------------------------------
    @property
    def logFile(self)->str:
        """Get main log file path."""
        return f"{self.saveFile}.log"

    #--------------------------------------------------------------------------
    @property
    def xmitFile(self)->str:
        """Get transmission-event log file path."""
        return f"{self.saveFile}_xmit.log"

    #--------------------------------------------------------------------------
    @property
    def logging(self)->str:
        """Get main logger configuration."""
        return self._logging

    @logging.setter
    def logging(self, logging:str)->None:
        """
        Set main logger configuration.

        Parameters
        ----------
        logging : str
            'all', 'none', 'noout', 'nofile', 'quiet', 'onlyfile',
            'onlyconsole'.
        """

        def setNoneLog()->None:
            """Set the main logger to no logging"""
            self.log = logger.noneLog(logger.MAIN_LOG)

        def setNoConsoleLog()->None:
            """Set the main logger to no console logging"""
            if (self.log is not None):
                if (logger.consoleHandler is not None):
                    logger.deepRemoveHandler(logger.consoleHandler)
                logger.removeLog(logger.MAIN_LOG)
            self.log = logger.setupMain(fileName=self.logFile,outFormat=None)

        def setNoFileLog()->None:
            """Set the main logger to no file logging"""
            if (self.log is not None):
                if (logger.fileHandler is not None):
                    logger.deepRemoveHandler(logger.fileHandler)
                logger.removeLog(logger.MAIN_LOG)
            self.log = logger.setupMain(fileFormat=None)

        def setDefaultLog()->None:
            """Set the main logger to default logging to console and file"""
            if (self.log is not None):
                logger.removeLog(logger.MAIN_LOG)
            self.log = logger.setupMain(fileName=self.logFile)

        # Map the logging settings to logging setter functions
        logSettings = {
            # No logging
            'NONE': setNoneLog,
            'OFF': setNoneLog,
            # No console logging
            'NOOUT': setNoConsoleLog,
            'QUIET': setNoConsoleLog,
            'NOCONSOLE': setNoConsoleLog,
            'ONLYFILE': setNoConsoleLog,
            # No file logging
            'NOFILE': setNoFileLog,
            'ONLYOUT': setNoFileLog,
            'ONLYCONSOLE': setNoFileLog,
        }

        # Set the logging settings
        configLog = logSettings.get(logging.upper(), setDefaultLog)
        configLog()
        self._logging = logging

    #--------------------------------------------------------------------------
    @property
    def xmitLogging(self)->str:
        """Get transmission-event logger configuration."""
        return self._xmitLogging

    @xmitLogging.setter
    def xmitLogging(self, xmitLogging:str)->None:
        """
        Set transmission-event logger configuration.

        Parameters
        ----------
        xmitLogging : str
            'all', 'none', 'noout', 'nofile', 'quiet'.
        """

        name = notify.log.name
        logger.removeHandlers(name)

        def setNoneXmit()->None:
            """Set the event logger to no console or unique file logging"""
            notify.log = logger.setupXmit(name=name, file=False, out=False)

        def setNoConsoleXmit()->None:
            """Set the event logger to no console logging"""
            notify.log = logger.setupXmit(name=name, fileName=self.xmitFile,
                                          out=False)

        def setNoFileXmit()->None:
            """Set the event logger to no unique file logging"""
            notify.log = logger.setupXmit(name=name, file=False)

        def setDefaultXmit()->None:
            """Set the event logger to default logging"""
            notify.log = logger.setupXmit(name=name, fileName=self.xmitFile)

        # Map the event logging settings to event log setting functions
        xmitSettings = {
            # No console or unique file logging
            'NONE': setNoneXmit,
            'OFF': setNoneXmit,
            # No console logging
            'NOOUT': setNoConsoleXmit,
            'QUIET': setNoConsoleXmit,
            'NOCONSOLE': setNoConsoleXmit,
            # No unique file logging
            'NOFILE': setNoFileXmit,
        }

        # Set the event logging settings
        configXmitLog = xmitSettings.get(xmitLogging.upper(), setDefaultXmit)
        configXmitLog()
        self._xmitLogging = xmitLogging

    ## Special Methods =======================================================#
    def __str__(self)->str:
        """
        Return user-friendly string representation of simulator configuration.
        """
        line = '*' * 64
        vesselOut = ["Vessels: "]
        if (self.vessels):
            vesselOut.extend(f"{v}" for v in self.vessels)
        else:
            vesselOut.append("None")

        return "\n".join([
            line,
            f"{self.__class__.__name__}: {self.name}",
            line,
            f"Time step: {self.sampleTime} s",
            f"Simulation time: {round(self.runTime)} seconds",
            f"Start state: {self.startState}",
            f"Antennas: {self.nAntennas}",
            *vesselOut,
            line,
        ])

    #--------------------------------------------------------------------------
    def __getstate__(self)->dict:
        """Drop scheduled actions, which may be unpicklable callables."""
        state = self.__dict__.copy()
        state['_events'] = []
        return state

    ## Methods ===============================================================#
    def schedule(self, t:float, action:Callable[[],None])->None:
        """
        Register an operator action to fire at simulation time t.

        Actions fire at the top of the first tick whose time is >= t, before
        data is recorded and vessels advance. Actions with equal times fire
        in registration order.
        """
        self._events.append((t, action))
        self._events.sort(key=lambda e: e[0])

    #--------------------------------------------------------------------------
    def run(self, plot:bool=True)->None:
        """
        Execute complete simulation workflow: run, log summary, plot.


        Parameters
        ----------
        plot : bool, default=True
            Save time series plots to the output directory.
        """

        self.log.info(f"{self}")
        start = time.time()
        self.simData = self.simulate()
        runTime = round(self.runTime)
        endData = round(time.time()-start)
        line = '*' * 64
        self.log.info(line)
        self.logXmitStats()
        self.log.info(f'Run Time:'+
                      f' (Real) {datetime.timedelta(seconds=endData)},'+
                      f' (Simulated) {datetime.timedelta(seconds=runTime)}')

        if (plot and self.nAntennas):
            self.plot()

        endTotal = round(time.time()-start)
        endPlot = round(endTotal - endData)
        self.log.info(f'Plotting Time: {datetime.timedelta(seconds=endPlot)}')
        self.log.info(f'Total Time: {datetime.timedelta(seconds=endTotal)}')
        self.log.info(line)

    #--------------------------------------------------------------------------
    def simulate(self)->NPFltArr:
        """
        Execute simulation iteration loop and record antenna data.


        Returns
        -------
        simData : ndarray, shape (nAntennas, N+1, 6)
            Each row: [enabled, deployed, busy, progress, dataThrough, pool].
        """

        # Start Antennas
        for v in self.vessels:
            v.onStart(self.startState)

        # Initialize Simulation Data Storage Table
        antennas = self.antennas
        simData = np.zeros([len(antennas), self.N+1, len(DATA_COLUMNS)],
                           float)
        events = list(self._events)

        # Simulation Loop
        for i in range(0, self.N+1):
            # Simulation time
            currentTime = self.simTime[i][0]
            logger.simTime = f'{currentTime:.2f}'

            # Operator actions
            while (events and (events[0][0] <= currentTime + 1e-9)):
                _, action = events.pop(0)
                action()

            # Store Simulation Data
            for j,a in enumerate(antennas):
                simData[j,i,:] = self._record(a)

            # Advance Vessels
            for v in self.vessels:
                v.tick(currentTime, self.sampleTime)

        return simData

    #--------------------------------------------------------------------------
    def plot(self, show:bool=False)->None:
        """
        Plot recorded time series for every antenna and the pool levels.

        Figures are saved next to saveFile and closed unless show is True.
        """

        if (self.simData is None):
            self.log.warning('No simulation data to plot. Call run() first.')
            return

        titles = self.antennaTitles
        for k,title in enumerate(titles):
            pltTS.plotAntennaStates(self.simTime,
                                    self.simData[k],
                                    title,
                                    k+1,
                                    f"{self.saveFile}_ant{k+1:02}.png")
        pltTS.plotFleetPool(self.simTime,
                            self.simData,
                            titles,
                            len(titles)+1,
                            f"{self.saveFile}_pool.png")
        if (show):
            plt.show()
        else:
            plt.close('all')

    #--------------------------------------------------------------------------
    def logXmitStats(self)->None:
        """Log per-antenna transmission statistics."""

        for title,a in zip(self.antennaTitles, self.antennas):
            s = a.scheduler
            self.log.info('%s: cycles=%d delivered=%d returned=%d '
                          'unreturned=%d status=%s', title, s.cycles,
                          s.itemsDelivered, s.itemsReturned,
                          len(s.unreturned), a.status.label)
        for v in self.vessels:
            science = getattr(v.sink, 'science', None)
            if (science is not None):
                self.log.info('%s: science recovered %.2f', v.callSign,
                              science)

    ## Helper Methods ========================================================#
    def _record(self, antenna:DataTransmitter)->List[float]:
        """Return the DATA_COLUMNS row for antenna."""
        st = antenna.state
        s = antenna.scheduler
        return [float(st.enabled),
                float(st.deployed),
                float(st.busy),
                s.progress if st.busy else 0.0,
                s.dataThrough if st.busy else 0.0,
                antenna.pool.level]

    #--------------------------------------------------------------------------
    def _makeSaveDir(self, dirName:str)->str:
        """
        Create and return output directory path for simulation files.


        Parameters
        ----------
        dirName : str
            Directory name for this simulation.


        Returns
        -------
        outDir : str
            Full path to created output directory.


        Notes
        -----
        - Without outRoot, creates outputs/<script_name>/<dirName>/ in the
          project directory, detecting the calling script name.
        - With outRoot, creates <outRoot>/<dirName>/.
        """

        if (self._outRoot is not None):
            scriptOutDir = self._outRoot
        else:
            # Get the project directory
            modulePath = inspect.getfile(importlib.import_module('rtxmit'))
            projDir = os.path.dirname(os.path.dirname(modulePath))

            # Get the user script name
            frame = inspect.currentframe()
            while frame.f_back:
                frame = frame.f_back
            if ('__file__' in frame.f_globals):
                scriptPath = os.path.abspath(frame.f_globals['__file__'])
                scriptName = os.path.splitext(os.path.basename(scriptPath))[0]
            else:
                scriptName = 'REPL'
            scriptOutDir = os.path.join(projDir, 'outputs', scriptName)

        # Create a unique subdirectory within the output directory
        outDir = os.path.join(scriptOutDir, dirName)
        os.makedirs(outDir, exist_ok=True)
        return outDir

###############################################################################

def save(simulation:Simulator,
         filename:Optional[str] = None,
         format:str = 'pickle',
         )->str:
    """
    Save Simulator object to file.


    Parameters
    ----------
    simulation : Simulator
        Simulator object to save.
    filename : str, optional
        Output filename (default: simulation.saveFile).
    format : {'pickle', 'pkl'}
        Save format (default: 'pickle'). Unknown formats fall back to pickle.


    Returns
    -------
    path : str
        Path of the written file.


    Notes
    -----
    Saves to simulation.outDir if filename has no directory. Running
    transmission cycles are not saved; the restored antennas come back idle.
    """

    exts = ['pickle', 'pkl']

    # Determine filename and path
    if (filename is None):
        filename = simulation.saveFile
    elif not (os.path.dirname(filename)):
        filename = os.path.join(simulation.outDir, filename)

    # Check filename for extension and remove if one of the save formats
    root, ext = os.path.splitext(filename)
    if (ext[1:].lower() in exts):
        filename = root
    baseName = os.path.basename(filename)

    if (format.lower() not in exts):
        simulation.log.info(f"simulator.save(): Unknown format: '{format}'.")
        simulation.log.info(f"Saving as 'pickle' format.")

    path = f"{filename}.pickle"
    with open(path, "wb") as f:
        pickle.dump(simulation, f, pickle.HIGHEST_PROTOCOL)
    simulation.log.info(f"Saved Simulator object as: '{baseName}.pickle'.")
    return path

###############################################################################

def load(filename:str,
         format:Optional[str] = None,
         )->Optional[Simulator]:
    """
    Load Simulator object from file.


    Parameters
    ----------
    filename : str
        Path to saved simulator file.
    format : str, optional
        File format. Detected from the extension if None.


    Returns
    -------
    simulation : Simulator
        Loaded Simulator object, or None if the format is not supported.
    """

    log = logger.addLog('sim')
    exts = ['pickle', 'pkl']

    if (format is None):
        _, ext = os.path.splitext(filename)
        format = ext[1:]
        if not (format):
            log.error("simulator.load(): No format specified for '%s'.",
                      os.path.basename(filename))
            return None

    if (format.lower() not in exts):
        log.error("simulator.load(): Unknown format: '%s'.", format)
        return None

    with open(filename, 'rb') as f:
        return pickle.load(f)
