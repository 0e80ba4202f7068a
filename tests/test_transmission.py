import pickle
import pytest
from rtxmit import config as cfg
from rtxmit.science import DataContainer, DataItem, ScienceArchive
from rtxmit.transmission import NOTIFY_EVERY
from conftest import (FailingContainer, FailingNotifier, FailingSink,
                      RecordingSink, runTicks)

###############################################################################

class TestScenarios:
    """Single item of size 100 at bandwidth 10 per tick."""

    def test_completes_after_ten_ticks(self, makeAntenna):
        sink = RecordingSink()
        ant = makeAntenna(sink=sink)
        item = DataItem('Crew Report', 'S1', 100.0)
        ant.queueData([item])

        assert ant.startTransmission()
        assert ant.busy
        runTicks(ant, 9)
        assert ant.busy
        assert ant.scheduler.progress == pytest.approx(0.9)
        runTicks(ant, 1)

        assert ant.scheduler.progress == 1.0
        assert sink.deliveries == [(item, False)]
        assert len(ant.queue) == 0
        assert not ant.busy
        assert item.triggered

    def test_fractional_steps_complete_on_time(self, makeAntenna, subjects):
        sink = RecordingSink()
        ant = makeAntenna(config={'transmitDataRate': 1.0}, sink=sink)
        item = DataItem('Crew Report', 'S1', 1.0)
        ant.queueData([item])
        ant.startTransmission()

        runTicks(ant, 10, dt=0.1)

        assert not ant.busy
        assert sink.deliveries == [(item, False)]
        context = subjects.contexts['S1']
        assert context.chunks == 10
        assert context.received <= 1.0

    def test_last_chunk_clamped_to_item(self, makeAntenna, subjects):
        sink = RecordingSink()
        ant = makeAntenna(sink=sink)
        item = DataItem('Crew Report', 'S1', 15.0)
        ant.queueData([item])
        ant.startTransmission()

        runTicks(ant, 2)

        assert sink.deliveries == [(item, False)]
        assert subjects.contexts['S1'].received == pytest.approx(15.0)

    def test_link_lost_returns_item(self, makeAntenna):
        sink = RecordingSink()
        container = DataContainer()
        ant = makeAntenna(sink=sink, container=container)
        item = DataItem('Crew Report', 'S1', 100.0)
        ant.queueData([item])
        ant.startTransmission()

        runTicks(ant, 4)
        assert ant.scheduler.dataThrough == pytest.approx(40.0)
        ant.link.up = False
        runTicks(ant, 1)

        assert not ant.busy
        assert sink.deliveries == []
        assert container.items == [item]
        assert len(ant.queue) == 0

    def test_link_lost_partial_delivery(self, makeAntenna, board, subjects):
        sink = ScienceArchive(subjects)
        container = DataContainer()
        ant = makeAntenna(config={'xmitIncomplete': True}, sink=sink,
                          container=container)
        item = DataItem('Crew Report', 'S1', 100.0)
        ant.queueData([item])
        ant.startTransmission()

        runTicks(ant, 4)
        ant.link.up = False
        runTicks(ant, 1)

        assert sink.deliveries == [(item, True)]
        assert sink.science == pytest.approx(40.0)
        assert len(container) == 0
        assert "[Comm16]: Partial transmission of Crew Report completed" \
            in board.texts()

###############################################################################

class TestNoDataLoss:

    @pytest.mark.parametrize('ticks,size', [(0, 100.0),
                                            (5, 100.0),
                                            (10, 100.5)])
    def test_abort_accounts_for_every_item(self, makeAntenna, ticks, size):
        sink = RecordingSink()
        container = DataContainer()
        ant = makeAntenna(sink=sink, container=container)
        items = [DataItem('Crew Report', 'S1', size),
                 DataItem('Temperature Scan', 'S2', 30.0),
                 DataItem('Seismic Scan', 'S3', 30.0)]
        ant.queueData(items)
        ant.startTransmission()

        runTicks(ant, ticks)
        ant.stopTransmission()
        runTicks(ant, 1)

        assert not ant.busy
        delivered = [i for i,_ in sink.deliveries]
        assert len(delivered) + len(container) == len(items)
        assert set(map(id, delivered + container.items)) == \
            set(map(id, items))
        assert container.items == items

    def test_abort_at_zero_progress_never_partial(self, makeAntenna):
        sink = RecordingSink()
        container = DataContainer()
        ant = makeAntenna(config={'xmitIncomplete': True}, sink=sink,
                          container=container)
        item = DataItem('Crew Report', 'S1', 100.0)
        ant.queueData([item])
        ant.startTransmission()
        ant.stopTransmission()
        runTicks(ant, 1)

        assert sink.deliveries == []
        assert container.items == [item]

    def test_item_flag_overrides_antenna(self, makeAntenna):
        sink = RecordingSink()
        container = DataContainer()
        ant = makeAntenna(config={'xmitIncomplete': True}, sink=sink,
                          container=container)
        item = DataItem('Crew Report', 'S1', 100.0, allowIncomplete=False)
        ant.queueData([item])
        ant.startTransmission()
        runTicks(ant, 3)
        ant.stopTransmission()
        runTicks(ant, 1)

        assert sink.deliveries == []
        assert container.items == [item]

###############################################################################

class TestCycle:

    def test_callback_called_exactly_once(self, makeAntenna):
        calls = []
        ant = makeAntenna()
        ant.queueData([DataItem('Crew Report', 'S1', 20.0),
                       DataItem('Temperature Scan', 'S2', 20.0)])
        ant.startTransmission(lambda: calls.append(1))

        runTicks(ant, 10)
        assert calls == [1]

    def test_callback_called_once_on_abort(self, makeAntenna):
        calls = []
        ant = makeAntenna()
        ant.queueData([DataItem('Crew Report', 'S1', 100.0)])
        ant.startTransmission(lambda: calls.append(1))
        runTicks(ant, 2)
        ant.stopTransmission()
        ant.stopTransmission()
        runTicks(ant, 5)
        assert calls == [1]

    def test_failing_callback_does_not_break_cycle(self, makeAntenna):
        def callback():
            raise RuntimeError('host gone')

        ant = makeAntenna()
        ant.queueData([DataItem('Crew Report', 'S1', 10.0)])
        ant.startTransmission(callback)
        runTicks(ant, 1)
        assert not ant.busy
        assert not ant.scheduler.running

    def test_multiple_items_in_order(self, makeAntenna, board):
        sink = RecordingSink()
        ant = makeAntenna(sink=sink)
        items = [DataItem('Crew Report', 'S1', 20.0),
                 DataItem('Temperature Scan', 'S2', 30.0)]
        ant.queueData(items)
        ant.startTransmission()

        runTicks(ant, 2)
        assert [i for i,_ in sink.deliveries] == items[:1]
        assert ant.queue.head is items[1]
        runTicks(ant, 3)
        assert [i for i,_ in sink.deliveries] == items
        assert not ant.busy
        starts = [m for m in board.texts() if 'Starting Transmission' in m]
        assert starts == ["[Comm16]: Starting Transmission of Crew Report",
                          "[Comm16]: Starting Transmission of "
                          "Temperature Scan"]

    def test_start_rejected_when_busy_or_empty(self, makeAntenna):
        ant = makeAntenna()
        assert not ant.startTransmission()
        ant.queueData([DataItem('Crew Report', 'S1', 100.0)])
        assert ant.startTransmission()
        assert not ant.scheduler.begin()
        assert ant.scheduler.cycles == 1

    def test_abort_ignored_when_idle(self, makeAntenna, board):
        ant = makeAntenna()
        ant.stopTransmission()
        assert not ant.state.aborted
        assert len(board) == 0

    def test_status_label_while_streaming(self, makeAntenna):
        ant = makeAntenna()
        ant.queueData([DataItem('Crew Report', 'S1', 100.0)])
        ant.startTransmission()
        runTicks(ant, 3)
        assert ant.status.label == 'Transmitting (30%)'
        runTicks(ant, 7)
        assert ant.status.label == 'Idle'

###############################################################################

class TestResolution:

    def test_unknown_first_subject_aborts_cycle(self, makeAntenna, board):
        container = DataContainer()
        calls = []
        ant = makeAntenna(container=container)
        item = DataItem('Mystery', 'UNKNOWN', 10.0)
        ant.queueData([item])

        assert ant.startTransmission(lambda: calls.append(1))
        assert not ant.busy
        assert container.items == [item]
        assert calls == [1]
        assert ("[Comm16]: Transmission aborted! Unable to identify science "
                "subjectID:UNKNOWN!") in board.texts()

    def test_unknown_later_subject_returns_rest(self, makeAntenna):
        sink = RecordingSink()
        container = DataContainer()
        ant = makeAntenna(sink=sink, container=container)
        items = [DataItem('Crew Report', 'S1', 20.0),
                 DataItem('Mystery', 'UNKNOWN', 10.0),
                 DataItem('Seismic Scan', 'S3', 10.0)]
        ant.queueData(items)
        ant.startTransmission()

        runTicks(ant, 2)
        assert not ant.busy
        assert [i for i,_ in sink.deliveries] == items[:1]
        assert container.items == items[1:]

###############################################################################

class TestNotifications:

    def test_progress_every_two_seconds(self, makeAntenna, board):
        ant = makeAntenna()
        ant.queueData([DataItem('Crew Report', 'S1', 100.0)])
        ant.startTransmission()
        runTicks(ant, 10)

        progress = [m for m in board.texts() if 'progress' in m]
        assert NOTIFY_EVERY == 2.0
        assert progress == [f"[Comm16]: Transmission progress: {p}%"
                            for p in (20, 40, 60, 80, 100)]
        assert board.texts()[-1] == \
            "[Comm16]: Transmission of Crew Report completed"

    def test_progress_cadence_with_small_steps(self, makeAntenna, board):
        ant = makeAntenna()
        ant.queueData([DataItem('Crew Report', 'S1', 100.0)])
        ant.startTransmission()
        runTicks(ant, 40, dt=0.25)

        progress = [m for m in board.texts() if 'progress' in m]
        assert len(progress) == 5

    def test_failing_notifier_does_not_change_outcome(self, makeAntenna):
        notifier = FailingNotifier()
        sink = RecordingSink()
        ant = makeAntenna(notifier=notifier, sink=sink)
        ant.queueData([DataItem('Crew Report', 'S1', 20.0)])
        ant.startTransmission()
        runTicks(ant, 2)

        assert notifier.calls > 0
        assert len(sink.deliveries) == 1
        assert not ant.busy

###############################################################################

class TestCollaboratorFailures:

    def test_sink_failure_returns_item(self, makeAntenna):
        container = DataContainer()
        ant = makeAntenna(sink=FailingSink(), container=container)
        item = DataItem('Crew Report', 'S1', 10.0)
        ant.queueData([item])
        ant.startTransmission()
        runTicks(ant, 1)

        assert not ant.busy
        assert container.items == [item]
        assert ant.scheduler.itemsDelivered == 0

    def test_container_failure_keeps_item(self, makeAntenna):
        ant = makeAntenna(container=FailingContainer())
        item = DataItem('Crew Report', 'S1', 100.0)
        ant.queueData([item])
        ant.startTransmission()
        runTicks(ant, 2)
        ant.stopTransmission()
        runTicks(ant, 1)

        assert not ant.busy
        assert ant.scheduler.unreturned == [item]
        assert ant.scheduler.itemsReturned == 0

###############################################################################

class TestPersistence:

    def test_pickle_mid_cycle_restores_idle(self, makeAntenna):
        ant = makeAntenna(startState=cfg.StartState.ORBITAL)
        ant.queueData([DataItem('Crew Report', 'S1', 100.0)])
        ant.startTransmission()
        runTicks(ant, 3)

        restored = pickle.loads(pickle.dumps(ant))
        assert ant.busy
        assert not restored.busy
        assert not restored.scheduler.running
        assert restored.status.label == 'Idle'
        assert len(restored.queue) == 1
