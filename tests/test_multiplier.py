import numpy as np
import pytest
from rtxmit.multiplier import (BANDWIDTH, CATEGORIES, CONSUMPTION, POWER,
                               MultiplierRegistry, MultiplierSet)

###############################################################################

class TestMultiplierSet:

    def test_empty_is_one(self):
        assert MultiplierSet(POWER).combined == 1.0

    def test_upsert_replaces_value(self):
        mset = MultiplierSet(BANDWIDTH)
        mset.set('booster', 2.0)
        mset.set('booster', 3.0)
        assert len(mset) == 1
        assert mset.combined == 3.0
        assert mset.get('booster') == 3.0

    def test_remove_absent_is_noop(self):
        mset = MultiplierSet(BANDWIDTH)
        mset.set('a', 2.0)
        assert mset.remove('missing') == 2.0
        assert mset.remove('a') == 1.0
        assert mset.get('a') is None

    def test_zero_value_allowed(self):
        mset = MultiplierSet(CONSUMPTION)
        mset.set('a', 4.0)
        mset.set('b', 0.0)
        assert mset.combined == 0.0

    @pytest.mark.parametrize('value', [float('nan'), float('inf')])
    def test_non_finite_rejected(self, value):
        mset = MultiplierSet(POWER)
        with pytest.raises(ValueError):
            mset.set('bad', value)
        assert len(mset) == 0

    def test_combined_is_product_after_random_edits(self):
        rng = np.random.default_rng(42)
        mset = MultiplierSet(POWER)
        names = [f'mod{i}' for i in range(6)]
        for _ in range(200):
            name = names[rng.integers(len(names))]
            if (rng.random() < 0.3):
                mset.remove(name)
            else:
                mset.set(name, float(rng.uniform(0.0, 3.0)))
            expected = np.prod([m.value for m in mset]) if len(mset) else 1.0
            assert mset.combined == pytest.approx(expected)

###############################################################################

class TestMultiplierRegistry:

    def test_categories_independent(self):
        reg = MultiplierRegistry()
        reg.set(POWER, 'a', 2.0)
        reg.set(BANDWIDTH, 'a', 5.0)
        assert reg.combined(POWER) == 2.0
        assert reg.combined(BANDWIDTH) == 5.0
        assert reg.combined(CONSUMPTION) == 1.0
        assert set(reg.sets) == set(CATEGORIES)

    def test_unknown_category(self):
        reg = MultiplierRegistry()
        with pytest.raises(ValueError):
            reg.set('range', 'a', 2.0)
        with pytest.raises(ValueError):
            reg.combined('range')

    def test_on_change_called_with_combined(self):
        calls = []
        reg = MultiplierRegistry(onChange=lambda c,v: calls.append((c, v)))
        reg.set(CONSUMPTION, 'a', 2.0)
        reg.set(CONSUMPTION, 'b', 0.5)
        reg.remove(CONSUMPTION, 'a')
        assert calls == [(CONSUMPTION, 2.0), (CONSUMPTION, 1.0),
                         (CONSUMPTION, 0.5)]

###############################################################################

class TestEffectiveRates:

    def test_rates_follow_multipliers(self, makeAntenna):
        ant = makeAntenna()
        ant.setMultiplier(BANDWIDTH, 'booster', 1.5)
        ant.setMultiplier(CONSUMPTION, 'efficient', 0.5)
        ant.setMultiplier(POWER, 'dish', 2.0)

        assert ant.effectiveBandwidth == pytest.approx(15.0)
        assert ant.effectiveTransmitConsumption == pytest.approx(2.5)
        assert ant.effectiveTelemetryConsumption == pytest.approx(0.25)
        assert ant.effectivePower == pytest.approx(1000000.0)

        ant.removeMultiplier(BANDWIDTH, 'booster')
        assert ant.effectiveBandwidth == pytest.approx(10.0)

    def test_clear_category_refreshes_rates(self, makeAntenna):
        ant = makeAntenna()
        ant.setMultiplier(CONSUMPTION, 'efficient', 0.5)
        ant.setMultiplier(CONSUMPTION, 'heater', 3.0)
        ant.multipliers.clear(CONSUMPTION)

        assert len(ant.multipliers[CONSUMPTION]) == 0
        assert ant.effectiveTransmitConsumption == pytest.approx(5.0)
        assert ant.effectiveTelemetryConsumption == pytest.approx(0.5)

    def test_zero_bandwidth_stalls_stream(self, makeAntenna):
        from rtxmit.science import DataItem
        from conftest import runTicks

        ant = makeAntenna()
        ant.setMultiplier(BANDWIDTH, 'jammed', 0.0)
        ant.queueData([DataItem('Crew Report', 'S1', 10.0)])
        ant.startTransmission()
        runTicks(ant, 5)
        assert ant.busy
        assert ant.scheduler.dataThrough == 0.0
