"""File and string helpers used by test suites."""
import logging
import os
import re
import shutil
import tempfile
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

import requests

from ranchertest.utils import run_command

logger = logging.getLogger("ranchertest.files")

PathLike = Union[str, Path]


@dataclass
class Host:
    """A libvirt DHCP host entry."""
    mac: str
    name: str
    ip: str


def get_host_net_config(regex: str, file_path: PathLike) -> Host:
    """Find a ``<host .../>`` entry in a libvirt network file.

    Args:
        regex: Pattern matching the wanted host line
        file_path: libvirt network XML file

    Returns:
        Host: The parsed entry

    Raises:
        ValueError: If nothing matches the pattern
    """
    content = Path(file_path).read_text()
    match = re.search(regex, content)
    if not match:
        raise ValueError(f"No host matching '{regex}' in {file_path}")

    element = ET.fromstring(match.group(0).strip())
    return Host(
        mac=element.get("mac", ""),
        name=element.get("name", ""),
        ip=element.get("ip", ""),
    )


LIBVIRT_NETWORK = "default"


def add_node(file_path: PathLike, name: str, index: int) -> Host:
    """Reserve a DHCP address for a node in the default libvirt network.

    The live network definition is read with ``virsh net-dumpxml``, the new
    host is appended to it and saved to file_path, then the running network
    is updated with ``virsh net-update``.

    Returns:
        Host: The added entry (MAC ``52:54:00:00:00:<index>``, IP ``192.168.122.<index+1>``)
    """
    out = run_command(["sudo", "virsh", "net-dumpxml", LIBVIRT_NETWORK], capture_output=True).stdout
    network = ET.fromstring(out)

    # Only the first <ip> block of the network is used
    dhcp = network.find("ip/dhcp")
    if dhcp is None:
        raise ValueError(f"No DHCP configuration in libvirt network '{LIBVIRT_NETWORK}'")

    host = Host(mac=f"52:54:00:00:00:{index:02x}", name=name, ip=f"192.168.122.{index + 1}")
    element = ET.SubElement(dhcp, "host", {"mac": host.mac, "name": host.name, "ip": host.ip})

    ET.indent(network)
    Path(file_path).write_text(ET.tostring(network, encoding="unicode") + "\n")

    run_command(["sudo", "virsh", "net-update", LIBVIRT_NETWORK, "add", "ip-dhcp-host",
                 "--live", "--xml", ET.tostring(element, encoding="unicode").strip()])
    logger.info(f"➕ Added {host.name} ({host.mac}, {host.ip}) to libvirt network {LIBVIRT_NETWORK}")
    return host


def get_file_from_url(url: str, file_name: PathLike, skip_verify: bool = False, timeout: int = 60) -> None:
    """Download url into file_name."""
    logger.debug(f"⬇️  Downloading {url} to {file_name}")
    response = requests.get(url, verify=not skip_verify, timeout=timeout, stream=True)
    response.raise_for_status()

    with open(file_name, "wb") as f:
        for chunk in response.iter_content(chunk_size=65536):
            f.write(chunk)


def get_files(directory: PathLike, pattern: str) -> List[str]:
    """Return files in directory matching a glob pattern, sorted."""
    return sorted(str(p) for p in Path(directory).glob(pattern))


def sed(old_value: str, new_value: str, file_path: PathLike) -> None:
    """Replace every match of the old_value regex in file_path, keeping its mode."""
    path = Path(file_path)
    mode = path.stat().st_mode
    content = re.sub(old_value, new_value, path.read_text())
    path.write_text(content)
    os.chmod(path, mode)


def add_data_to_file(src_file: PathLike, dst_file: PathLike, data: bytes = b"") -> None:
    """Copy src_file to dst_file, then append data to dst_file."""
    with open(src_file, "rb") as src, open(dst_file, "wb") as dst:
        shutil.copyfileobj(src, dst)
        if data:
            dst.write(data)


def write_file(dst_file: PathLike, data: bytes) -> None:
    """Write data to dst_file, truncating it."""
    with open(dst_file, "wb") as f:
        f.write(data or b"")


def copy_file(src_file: PathLike, dst_file: PathLike) -> None:
    add_data_to_file(src_file, dst_file)


def trim_string_from_char(s: str, c: str) -> str:
    """Remove everything from the first occurrence of c."""
    idx = s.find(c)
    if idx != -1:
        return s[:idx]
    return s


def create_temp(base_name: str) -> str:
    """Create an empty temporary file and return its name."""
    fd, name = tempfile.mkstemp(prefix=base_name)
    os.close(fd)
    return name
