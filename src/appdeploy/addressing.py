"""Private endpoint address selection."""

from __future__ import annotations

import ipaddress

from .config import AZURE_RESERVED_SUBNET_ADDRESSES


def subnet_prefix(subnet: object) -> str:
    """Return the IPv4 prefix of an SDK Subnet object.

    Subnets created with several prefixes expose address_prefixes instead of
    address_prefix; the first one is used.
    """
    prefix = getattr(subnet, "address_prefix", None)
    if not prefix:
        prefixes = getattr(subnet, "address_prefixes", None) or []
        prefix = prefixes[0] if prefixes else None
    if not prefix:
        raise ValueError(f"Subnet {getattr(subnet, 'name', '?')} has no address prefix")
    return prefix


def first_assignable_address(prefix: str) -> str:
    """Return the first address Azure lets a NIC use in a prefix.

    >>> first_assignable_address("10.20.1.0/27")
    '10.20.1.4'
    """
    # Deliberately not the first address of the prefix. Azure reserves the first
    # four addresses of every subnet, so .4 is the lowest usable one.
    network = ipaddress.ip_network(prefix, strict=False)
    if network.num_addresses <= AZURE_RESERVED_SUBNET_ADDRESSES + 1:
        raise ValueError(f"Prefix {prefix} is too small for a private endpoint")
    return str(network.network_address + AZURE_RESERVED_SUBNET_ADDRESSES)
