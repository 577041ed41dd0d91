import pytest

from flagbind.utils import default_name_transform, positional_name_transform


@pytest.mark.parametrize(
    "before, after",
    [
        ("NoUpload", "noUpload"),
        ("DHT", "dht"),
        ("NoIPv6", "noIPv6"),
        ("TCPAddr", "tcpAddr"),
        ("Addr", "addr"),
        ("V", "v"),
        ("A", "a"),
        ("listen_addr", "listenAddr"),
        ("no_IPv6", "noIPv6"),
        ("data_dir", "dataDir"),
        ("verbose", "verbose"),
        ("_leading_underscore", "leadingUnderscore"),
    ],
)
def test_default_name_transform(before, after):
    assert default_name_transform(before) == after


@pytest.mark.parametrize(
    "before, after",
    [
        ("torrent_files", "TORRENT_FILES"),
        ("Arg", "ARG"),
        ("arg", "ARG"),
        ("TorrentFile", "TORRENT_FILE"),
        ("_private", "PRIVATE"),
    ],
)
def test_positional_name_transform(before, after):
    assert positional_name_transform(before) == after
