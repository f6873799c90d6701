"""Relative IP id computation between successive replies."""

from __future__ import annotations


class IdRelativizer:
    """Turns absolute IP ids into per-packet increments."""

    def __init__(self):
        self.last_seq = 0
        self.last_id = -1
        self.out_of_sequence = 0

    def relativize(self, seqnum, ip_id):
        """Return the id increment per sequence step, or None.

        None is returned for the first reply and for replies whose sequence
        number does not advance; the latter are counted as out of sequence.
        """
        if self.last_id == -1:
            self.last_id = ip_id
            self.last_seq = seqnum
            return None
        seq_diff = seqnum - self.last_seq
        if seq_diff <= 0:
            self.out_of_sequence += 1
            return None
        if self.last_id > ip_id:
            relative = ((65535 - self.last_id) + ip_id) // seq_diff
        else:
            relative = (ip_id - self.last_id) // seq_diff
        self.last_id = ip_id
        self.last_seq = seqnum
        return relative