import pytest

from sim7000sms.power import DEFAULT_DURATIONS, PowerSequence


def test_start_drives_key_active():
    sequence = PowerSequence()
    assert sequence.start(0) is True
    assert sequence.running
    assert sequence.step == 0


def test_step_not_finished_before_duration():
    sequence = PowerSequence()
    sequence.start(100)
    assert sequence.advance(100 + 1499) is False
    assert sequence.step == 0
    assert sequence.level() is True


def test_full_sequence_alternates_levels_and_finishes():
    sequence = PowerSequence()
    now = 0
    sequence.start(now)
    levels = [sequence.level()]
    finished = False
    for duration in DEFAULT_DURATIONS:
        now += duration
        finished = sequence.advance(now)
        if not finished:
            levels.append(sequence.level())
    assert finished is True
    assert levels == [True, False, True, False]
    assert not sequence.running


def test_advance_after_finish_does_nothing():
    sequence = PowerSequence((10,))
    sequence.start(0)
    assert sequence.advance(10) is True
    assert sequence.advance(1000) is False
    assert sequence.current_duration == 0


def test_toggle_only_starts_at_second_press():
    sequence = PowerSequence()
    sequence.start(0, toggle_only=True)
    assert sequence.step == 2
    assert sequence.current_duration == DEFAULT_DURATIONS[2]
    assert sequence.advance(DEFAULT_DURATIONS[2]) is False
    assert sequence.level() is False
    total = DEFAULT_DURATIONS[2] + DEFAULT_DURATIONS[3]
    assert sequence.advance(total) is True


def test_step_timer_restarts_at_each_step():
    sequence = PowerSequence((5, 7, 3))
    sequence.start(0)
    assert sequence.advance(9) is False
    assert sequence.step == 1
    assert sequence.advance(15) is False
    assert sequence.step == 1
    assert sequence.advance(16) is False
    assert sequence.step == 2


def test_not_started_never_advances():
    sequence = PowerSequence()
    assert sequence.advance(10**9) is False
    assert not sequence.running


def test_invalid_durations_rejected():
    with pytest.raises(ValueError):
        PowerSequence(())
    with pytest.raises(ValueError):
        PowerSequence((10, 0))


def test_toggle_on_short_sequence_rejected():
    with pytest.raises(ValueError):
        PowerSequence((10, 20)).start(0, toggle_only=True)