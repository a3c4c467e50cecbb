"""Target and port expression parsing."""

from .ports import parse_port_expression, parse_ports
from .targets import AddressSequence, expand, int_to_ip, ip_to_int

__all__ = [
    "AddressSequence",
    "expand",
    "int_to_ip",
    "ip_to_int",
    "parse_port_expression",
    "parse_ports",
]
