from hprobe.relid import IdRelativizer


def test_first_reply_has_no_relative_id():
    rel = IdRelativizer()
    assert rel.relativize(0, 500) is None
    assert rel.last_id == 500


def test_increment_per_step():
    rel = IdRelativizer()
    rel.relativize(1, 100)
    assert rel.relativize(2, 110) == 110 - 100


def test_increment_divided_by_sequence_gap():
    rel = IdRelativizer()
    rel.relativize(1, 100)
    result = rel.relativize(3, 120)
    assert result * 2 == 120 - 100


def test_wraparound():
    rel = IdRelativizer()
    rel.relativize(1, 65530)
    assert rel.relativize(2, 4) == (65535 - 65530) + 4


def test_out_of_sequence_counted_and_state_kept():
    rel = IdRelativizer()
    rel.relativize(5, 100)
    assert rel.relativize(5, 200) is None
    assert rel.relativize(3, 200) is None
    assert rel.out_of_sequence == 2
    assert rel.last_id == 100
    assert rel.last_seq == 5