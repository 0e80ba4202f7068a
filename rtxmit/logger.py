"""
Logging configuration for transmitter simulations.

Sets up the main program logger, the transmission-event logger used by the
notification sink, and the sublevel loggers each module registers at import.
All records carry the current simulation time so that engine events line up
with the tick they happened on.


Functions
---------
**Setup Functions:**

    setupMain(fileName, fileFormat, fileLevel, outFormat, outLevel)
        Configure and return main program logger.
    setupXmit(name, fileName, file, out)
        Configure and return transmission-event logger.

**Logger Management:**

    addLog(name)
        Create logger that uses main logger handlers.
    noneLog(name)
        Create logger with no handlers (warnings only).
    removeLog(name)
        Remove logger and close unshared handlers.

**Handler Management:**

    addMainHandlers(subLog)
        Add main logger handlers to sublevel logger.
    removeHandlers(name)
        Remove all handlers from logger, closing unshared ones.
    closeHandler(handler)
        Close handler and update global variables.
    deepRemoveHandler(handler)
        Remove handler from all loggers and close it.

**Custom Features:**

    customRecordFactory, CustomFormatter
        simTime stamping and multi-line record layout.


Global Variables
----------------
log : logging.Logger
    Main simulation logger instance.
consoleHandler : logging.StreamHandler
    Shared console output handler.
fileHandler : logging.FileHandler
    Shared file output handler.
simTime : str
    Current simulation time for log records (seconds, two decimals).


Notes
-----
The Simulator assigns simTime at the top of every tick before any antenna is
advanced, so every record emitted during that tick is stamped with it.
"""

from typing import Optional
from datetime import datetime
import logging
import os

#-----------------------------------------------------------------------------#

# Logging levels
DEBUG = logging.DEBUG           # 10
INFO = logging.INFO             # 20
WARNING = logging.WARNING       # 30
ERROR = logging.ERROR           # 40
CRITICAL = logging.CRITICAL     # 50

# Log record component formats
SIMTIME = '%(simTime)8s'
DATETIME = '%(asctime)s'
NAME  = '%(name)-8s'
LEVEL = '%(levelname)-7s'
FUNCTION = '%(funcName)s'
MESSAGE = '%(message)s'

# Delimiter strings
CS = ' : '      # Colon with spaces
RAB = '>'       # Right angle bracket
P = '|'         # Pipe
S = ' '         # Space

# Formatting strings
FMT_DATE = '%M:%S'
FMT_OUT = P+SIMTIME+P+S+NAME+CS+LEVEL+S+RAB+S+MESSAGE
FMT_FILE = P+SIMTIME+S+DATETIME+P+S+NAME+S+LEVEL+S+FUNCTION+CS+MESSAGE

# Main logger name
MAIN_LOG = 'rtXmit'

# Global variables -----------------------------------------------------------#

# Main logger and main handlers
log = None
consoleHandler = None
fileHandler = None

# Register loggers needing main handlers
pending = []

# Custom logging
oldFactory = logging.getLogRecordFactory()  # Cache for original record factory
simTime = '0.00'                            # Initial value of custom field

###############################################################################

class CustomFormatter(logging.Formatter):
    """Formatter that brackets function names and prefixes every line."""

    def format(self, record):
        if not (record.funcName.startswith("[")):
            func = f"[{record.funcName}]"
            record.funcName = f"{func:22}"

        # Repeat the record prefix on continuation lines of status dumps
        if (isinstance(record.msg, str) and ('\n' in record.msg)):
            record = logging.makeLogRecord(record.__dict__)
            prefixFmt, _, _ = self._fmt.partition(MESSAGE)
            if (DATETIME in prefixFmt):
                record.asctime = self.formatTime(record, self.datefmt)
            prefix = prefixFmt % record.__dict__
            record.msg = ('\n' + prefix).join(record.msg.split('\n'))

        return super().format(record)

###############################################################################

def customRecordFactory(*args, **kwargs):
    """Stamp each new log record with the current simTime."""
    record = oldFactory(*args, **kwargs)
    record.simTime = simTime
    return record

###############################################################################

def addMainHandlers(subLog:logging.Logger)->None:
    """Add the main console and file handlers (where they exist) to subLog."""

    if (consoleHandler is not None):
        subLog.addHandler(consoleHandler)
    if (fileHandler is not None):
        subLog.addHandler(fileHandler)
    subLog.debug('%s logger activated', subLog.name)

###############################################################################

def setupMain(fileName:Optional[str] = MAIN_LOG+'.log',
              fileFormat:Optional[str] = FMT_FILE,
              fileLevel:int = DEBUG,
              outFormat:Optional[str] = FMT_OUT,
              outLevel:int = INFO,
              )->logging.Logger:
    """
    Configure and return main program logger with console and file handlers.


    Parameters
    ----------
    fileName : str, default='rtXmit.log'
        Log file name. If None, file output disabled.
    fileFormat : str, optional
        Format string for file handler. If None, file output disabled.
    fileLevel : int, default=DEBUG
        Minimum log level for file handler.
    outFormat : str, optional
        Format string for console handler. If None, console output disabled.
    outLevel : int, default=INFO
        Minimum log level for console handler.


    Returns
    -------
    log : logging.Logger
        Main logger instance with configured handlers.


    Notes
    -----
    - Installs the simTime record factory.
    - Loggers created by addLog() before this call are given the main handlers
      here.
    """

    global log, consoleHandler, fileHandler, pending

    if (log is None):

        logging.setLogRecordFactory(customRecordFactory)
        log = logging.getLogger(MAIN_LOG)
        log.setLevel(DEBUG)

        # Console
        if (outFormat is not None):
            if (consoleHandler is None):
                consoleHandler = logging.StreamHandler()
                consoleHandler.set_name('Console handler')
                consoleHandler.setLevel(outLevel)
                consoleHandler.setFormatter(CustomFormatter(outFormat))
            log.addHandler(consoleHandler)
            log.info('Console logging started')

        # File
        if ((fileFormat is not None) and (fileName is not None)):
            if (fileHandler is None):
                fileHandler = logging.FileHandler(fileName)
                fileHandler.set_name('File handler')
                fileHandler.setLevel(fileLevel)
                fileHandler.setFormatter(CustomFormatter(fileFormat,
                                                         FMT_DATE))
            log.addHandler(fileHandler)
            start = datetime.now().strftime("%m/%d/%Y %H:%M:%S")
            log.info('File logging started at %s in %s',
                     start, os.path.basename(fileName))

        while pending:
            name = pending.pop()
            addMainHandlers(logging.getLogger(name))

    return log

###############################################################################

def addLog(name:str)->logging.Logger:
    """
    Create logger that shares main logger handlers.


    Parameters
    ----------
    name : str
        Logger name.


    Returns
    -------
    logger : logging.Logger
        New or existing logger with main handlers.


    Notes
    -----
    If the main logger is not yet created, the logger is queued in `pending`
    and picks up the handlers in setupMain().
    """

    global pending

    if (name not in logging.Logger.manager.loggerDict):
        thisLog = logging.getLogger(name)
        thisLog.setLevel(DEBUG)
        if (log is None):
            pending.append(name)
        else:
            addMainHandlers(thisLog)
        return thisLog

    return logging.getLogger(name)

###############################################################################

def noneLog(name:str)->logging.Logger:
    """
    Create or configure logger with no handlers.

    Non-shared handlers are removed and closed; for the main logger all
    handlers are closed. Level is set to WARNING, so only warnings and above
    reach stderr through the logging module's last resort handler.
    """

    global log

    thisLog = logging.getLogger(name)
    thisLog.setLevel(WARNING)

    if (thisLog.hasHandlers()):
        if (thisLog is log):
            while thisLog.handlers:
                deepRemoveHandler(thisLog.handlers[0])
        else:
            removeHandlers(name)

    if (name == MAIN_LOG):
        log = thisLog

    return thisLog

###############################################################################

def closeHandler(handler:logging.Handler)->None:
    """Close handler and clear the matching global handler reference."""

    global consoleHandler
    global fileHandler

    handler.close()

    if (handler is consoleHandler):
        consoleHandler = None
    elif (handler is fileHandler):
        fileHandler = None

###############################################################################

def removeHandlers(name:str)->None:
    """
    Remove all handlers from logger, closing the ones no other logger uses.


    Parameters
    ----------
    name : str
        Logger name.
    """

    thisLog = logging.getLogger(name)

    while thisLog.handlers:
        handler = thisLog.handlers[0]
        thisLog.removeHandler(handler)

        closeIt = True
        for _,l in logging.Logger.manager.loggerDict.items():
            if isinstance(l, logging.Logger):
                if (handler in l.handlers):
                    closeIt = False
                    break
        if (closeIt):
            closeHandler(handler)

###############################################################################

def deepRemoveHandler(handler:logging.Handler)->None:
    """Remove handler from every registered logger, then close it."""

    for _,thisLog in logging.Logger.manager.loggerDict.items():
        if isinstance(thisLog, logging.Logger):
            if (handler in thisLog.handlers):
                thisLog.removeHandler(handler)

    closeHandler(handler)

###############################################################################

def removeLog(name:str)->None:
    """
    Remove logger and close unshared handlers.

    If removing the main logger, the global log is reset to None so that the
    next setupMain() call builds it again.
    """

    global log

    thisLog = logging.getLogger(name)
    removeHandlers(name)

    del logging.Logger.manager.loggerDict[name]
    if (thisLog is log):
        log = None

###############################################################################

def setupXmit(name:str = 'xmit',
              fileName:Optional[str] = 'xmit.log',
              file:bool = True,
              out:bool = True,
              )->logging.Logger:
    """
    Configure and return the transmission-event logger.

    This logger carries the operator notifications posted by antennas
    (transmission start, progress, completion, shutdown notices).


    Parameters
    ----------
    name : str, default='xmit'
        Logger name.
    fileName : str, default='xmit.log'
        Event log file name.
    file : bool, default=True
        Enable separate event log file.
    out : bool, default=True
        Enable console output for event logs.


    Returns
    -------
    xmitLog : logging.Logger
        Transmission-event logger with configured handlers.


    Notes
    -----
    - Console output requires the main console handler to exist.
    - With its own file, events are not duplicated into the main log file.
    """

    xmitLog = logging.getLogger(name)
    xmitLog.setLevel(DEBUG)

    if ((out) and (consoleHandler is not None)):
        xmitLog.addHandler(consoleHandler)

    if ((file) and (fileName is not None)):
        xmitFileHandler = logging.FileHandler(fileName)
        xmitFileHandler.set_name('Xmit file handler')
        if (fileHandler is not None):
            xmitFileHandler.setLevel(fileHandler.level)
        else:
            xmitFileHandler.setLevel(DEBUG)
        xmitFileHandler.setFormatter(CustomFormatter(FMT_FILE, FMT_DATE))
        xmitLog.addHandler(xmitFileHandler)
        start = datetime.now().strftime("%m/%d/%Y %H:%M:%S")
        xmitLog.info('Xmit file logging started at %s in %s',
                     start, os.path.basename(fileName))
    else:
        if (fileHandler is not None):
            xmitLog.addHandler(fileHandler)

    xmitLog.debug('%s logger activated', name)
    return xmitLog
