import pytest

from edgenet.raw.checksum import checksum_accumulate, checksum_finish

IP_HEADER = bytes.fromhex("45000073 00004000 4011b861 c0a80001 c0a800c7")


def test_known_ip_header_checksum():
    assert checksum_finish(checksum_accumulate(IP_HEADER, 5)) == 0xB861


def test_skipped_word_ignored():
    altered = bytearray(IP_HEADER)
    altered[10:12] = b"\xff\xff"
    assert checksum_accumulate(altered, 5) == checksum_accumulate(IP_HEADER, 5)


def test_full_sum_including_checksum_verifies():
    assert checksum_finish(checksum_accumulate(IP_HEADER)) == 0


def test_odd_length_padded():
    assert checksum_accumulate(b"\x12\x34\x56") == checksum_accumulate(b"\x12\x34\x56\x00")


def test_empty_sum():
    assert checksum_accumulate(b"") == 0
    assert checksum_finish(0) == 0xFFFF


@pytest.mark.parametrize("total", [0x1FFFF, 0x2FFFE, 0x12345678])
def test_finish_fits_sixteen_bits(total):
    result = checksum_finish(total)
    assert 0 <= result <= 0xFFFF
    assert checksum_finish(total) == checksum_finish((total >> 16) + (total & 0xFFFF))