from .normalization import cell_to_str, format_number, parse_user_number, round_money, to_float, to_int
from .packaging_math import parse_pack_size, unpack_total_quantity

__all__ = [
    "cell_to_str",
    "format_number",
    "parse_pack_size",
    "parse_user_number",
    "round_money",
    "to_float",
    "to_int",
    "unpack_total_quantity",
]
