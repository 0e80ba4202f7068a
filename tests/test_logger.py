import logging
from rtxmit import logger
from rtxmit.notify import MessageBoard

###############################################################################

class TestRecords:

    def test_record_carries_sim_time(self, monkeypatch):
        monkeypatch.setattr(logger, 'simTime', '12.50')
        record = logger.customRecordFactory('xmit', logging.INFO, __file__,
                                            1, 'hello', None, None)
        assert record.simTime == '12.50'

    def test_multiline_message_prefixed(self):
        record = logging.LogRecord('xmit', logging.INFO, __file__, 1,
                                   'first\nsecond', None, None,
                                   func='fn')
        record.simTime = '1.00'
        out = logger.CustomFormatter(logger.FMT_OUT).format(record)
        lines = out.split('\n')
        assert len(lines) == 2
        assert lines[0].startswith('|    1.00| xmit')
        assert lines[1].startswith('|    1.00| xmit')
        assert lines[1].endswith('> second')

    def test_message_board_stamps_time(self, monkeypatch):
        monkeypatch.setattr(logger, 'simTime', '3.00')
        board = MessageBoard()
        board.notify('[Comm16]: Transmission progress: 20%')
        assert board.messages == [('3.00',
                                   '[Comm16]: Transmission progress: 20%')]

###############################################################################

class TestLoggers:

    def test_none_log_has_no_handlers(self):
        thisLog = logger.noneLog('rtxmit-test-none')
        assert thisLog.level == logging.WARNING
        assert not thisLog.handlers

    def test_add_log_returns_existing(self):
        first = logger.addLog('rtxmit-test-add')
        assert logger.addLog('rtxmit-test-add') is first
        assert first.level == logging.DEBUG
