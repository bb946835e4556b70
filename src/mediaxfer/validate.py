from __future__ import annotations

import ipaddress
import os


def is_valid_ip(text: str) -> bool:
    if text == "localhost":
        return True
    try:
        ipaddress.ip_address(text)
    except ValueError:
        return False
    return True


def is_valid_port(text: str) -> bool:
    try:
        port = int(text)
    except ValueError:
        return False
    return 0 <= port <= 65535


def is_valid_file_path(path: str) -> bool:
    return os.path.isfile(path)
