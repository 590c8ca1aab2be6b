"""Endpoint payloads of a small fake cluster."""

import json

MASTER_UUID_1 = "a1b2c3d4e5f60718293a4b5c6d7e8f90"
MASTER_UUID_2 = "0f9e8d7c6b5a49382716f5e4d3c2b1a0"


def metrics_body(rows_inserted: int = 100, mem_tracker: int = 500) -> str:
    """Body of the metrics endpoint of a tablet server."""
    return json.dumps(
        [
            {
                "type": "server",
                "id": "yb.tabletserver",
                "attributes": {},
                "metrics": [{"name": "mem_tracker", "value": mem_tracker}],
            },
            {
                "type": "tablet",
                "id": "tablet-1",
                "attributes": {
                    "namespace_name": "yugabyte",
                    "table_name": "orders",
                    "table_id": "000030af",
                },
                "metrics": [
                    {"name": "rows_inserted", "value": rows_inserted},
                    {
                        "name": "log_append_latency",
                        "total_count": rows_inserted // 10,
                        "total_sum": rows_inserted * 10,
                    },
                ],
            },
        ]
    )


def masters_body(*uuids: str, role: str = "LEADER") -> str:
    """Body of api/v1/masters listing the given masters."""
    return json.dumps(
        {
            "masters": [
                {
                    "instance_id": {
                        "permanent_uuid": uuid,
                        "instance_seqno": 1700000000000000 + index,
                        "start_time_us": 1700000000000000 + index,
                    },
                    "registration": {
                        "private_rpc_addresses": [
                            {"host": f"node{index + 1}", "port": 7100}
                        ],
                        "http_addresses": [{"host": f"node{index + 1}", "port": 7000}],
                        "cloud_info": {
                            "placement_cloud": "cloud1",
                            "placement_region": "datacenter1",
                            "placement_zone": "rack1",
                        },
                        "placement_uuid": "",
                    },
                    "role": role if index == 0 else "FOLLOWER",
                }
                for index, uuid in enumerate(uuids)
            ]
        }
    )


def tablet_servers_body(uptime: int = 5000, status: str = "ALIVE") -> str:
    """Body of api/v1/tablet-servers with one tablet server."""
    return json.dumps(
        {
            "": {
                "node1:9000": {
                    "time_since_hb_sec": 0.5,
                    "status": status,
                    "uptime_seconds": uptime,
                    "ram_used_bytes": 1024,
                    "num_sst_files": 2,
                    "read_ops_per_sec": 0.0,
                    "write_ops_per_sec": 1.5,
                    "active_tablets": 3,
                    "cloud": "cloud1",
                    "region": "datacenter1",
                    "zone": "rack1",
                }
            }
        }
    )


def varz_body(**flags: str) -> str:
    """Body of api/v1/varz with the given flags."""
    return json.dumps(
        {
            "flags": [
                {"name": name, "value": value, "type": "Default"}
                for name, value in flags.items()
            ]
        }
    )


NODE_EXPORTER_BODY = """\
# HELP node_cpu_seconds_total Seconds the CPUs spent in each mode.
# TYPE node_cpu_seconds_total counter
node_cpu_seconds_total{cpu="0",mode="idle"} 100.0
node_cpu_seconds_total{cpu="1",mode="idle"} 200.0
node_cpu_seconds_total{cpu="0",mode="user"} 10.0
node_cpu_seconds_total{cpu="1",mode="user"} 20.0
# HELP node_load1 1m load average.
# TYPE node_load1 gauge
node_load1 0.5
# HELP go_goroutines Number of goroutines that currently exist.
# TYPE go_goroutines gauge
go_goroutines 8
"""


