import json
import logging
import os
from typing import Any
from typing import Dict
from typing import Optional

"""
Reading of connection parameters from a configuration file.

The file is JSON (or YAML, if pyyaml happens to be installed) with one
object per section::

    {
        "default": {"cdav_url": "https://cloud.example.com/remote.php/dav/",
                    "cdav_user": "alice", "cdav_pass": "secret"},
        "work": {"inherits": "default", "cdav_user": "alice.work"}
    }

Keys prefixed with ``cdav_`` are connection parameters, ``cdav_user``
and ``cdav_pass`` are accepted as shortcuts for username and password.
"""

log = logging.getLogger("cdav")


def config_section(config: Dict[str, Any], section: str = "default") -> Dict[str, Any]:
    """
    The settings of one section, with everything from the section it
    ``inherits`` from (recursively) filled in underneath.
    """
    if section in config and "inherits" in config[section]:
        ret = config_section(config, config[section]["inherits"])
    else:
        ret = {}
    if section in config:
        ret.update(config[section])
    return ret


def connection_params(section: Dict[str, Any]) -> Dict[str, Any]:
    from cdav.davclient import CONNKEYS

    conn_params = {}
    for k in section:
        if k.startswith("cdav_") and section[k]:
            key = k[5:]
            if key == "pass":
                key = "password"
            if key == "user":
                key = "username"
            if key not in CONNKEYS:
                log.warning(f"unknown connection parameter {k} in config file, ignoring it")
                continue
            conn_params[key] = section[k]
    return conn_params


def read_config(fn: Optional[str], interactive_error: bool = False) -> Optional[Dict[str, Any]]:
    if not fn:
        cfgdir = f"{os.environ.get('HOME', '/')}/.config"
        for config_file in (
            f"{cfgdir}/cdav/cdav.conf",
            f"{cfgdir}/cdav/cdav.yaml",
            f"{cfgdir}/cdav/cdav.json",
            "/etc/cdav/cdav.conf",
        ):
            cfg = read_config(config_file)
            if cfg:
                return cfg
        return None

    try:
        try:
            with open(fn, "rb") as config_file:
                return json.load(config_file)
        except json.decoder.JSONDecodeError:
            ## Late import, wrapped in try/except.  yaml is an external module,
            ## and not included in the requirements as for now.
            try:
                import yaml

                try:
                    with open(fn, "rb") as config_file:
                        return yaml.load(config_file, yaml.SafeLoader)
                except yaml.YAMLError:
                    log.error(
                        f"config file {fn} exists but is neither valid json nor yaml.  Check the syntax."
                    )
            except ImportError:
                log.error(
                    f"config file {fn} exists but is not valid json, and pyyaml is not installed."
                )

    except FileNotFoundError:
        log.info("no config file found")
    except ValueError:
        if interactive_error:
            log.error(
                "error in config file.  Be aware that the interactive configuration will ignore and overwrite the current broken config file",
                exc_info=True,
            )
        else:
            log.error("error in config file.  It will be ignored", exc_info=True)
    return {}
