"""
Persistence of collected resource snapshots between collect and analyze runs.
"""
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..core.exceptions import MalformedInputError, OutputWriteError
from ..engine.models import ResourceKind, ResourceSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SnapshotCollection:
    """Snapshots in discovery order and the look-back window they were averaged over.

    ``window_days`` is None for collections saved without a window.
    """
    snapshots: Tuple[ResourceSnapshot, ...]
    window_days: Optional[int] = None

    def __len__(self) -> int:
        return len(self.snapshots)

    def __iter__(self) -> Iterator[ResourceSnapshot]:
        return iter(self.snapshots)


def _flag(data: Dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"'{key}' must be true or false, got {value!r}")
    return value


class SnapshotStore:
    """Saves and loads a snapshot collection as a JSON document.

    The document is ``{"windowDays": N, "snapshots": [...]}``. A bare JSON
    array of snapshot records is also accepted on load, with no window.
    """

    def save(self, snapshots: List[ResourceSnapshot], path: Path, window_days: Optional[int] = None) -> Path:
        """Save snapshots to disk.

        Args:
            snapshots: Snapshots to save, in discovery order
            path: Target JSON file
            window_days: Look-back window the snapshot averages cover

        Returns:
            Path to the saved file

        Raises:
            OutputWriteError: If saving fails; no partial file is left behind
        """
        temp_file = path.with_suffix(path.suffix + '.tmp')
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            data = {
                'windowDays': window_days,
                'snapshots': [self._serialize_snapshot(s) for s in snapshots],
            }

            # Write atomically via temp file
            with open(temp_file, 'w') as f:
                json.dump(data, f, indent=2)
            temp_file.replace(path)

            logger.info(f"Saved {len(snapshots)} snapshots to {path}")
            return path

        except (OSError, TypeError, ValueError) as e:
            if temp_file.exists():
                temp_file.unlink()
            raise OutputWriteError(f"Failed to save snapshots to {path}: {e}", details=str(e))

    def load(self, path: Path) -> SnapshotCollection:
        """Load a snapshot collection.

        Args:
            path: JSON file written by save()

        Returns:
            SnapshotCollection with snapshots in stored order

        Raises:
            MalformedInputError: If the file is missing, not valid JSON, has
                an invalid window, or any record is malformed
        """
        try:
            with open(path, 'r') as f:
                data = json.load(f)
        except FileNotFoundError:
            raise MalformedInputError(f"Snapshot file not found: {path}")
        except json.JSONDecodeError as e:
            raise MalformedInputError(f"Snapshot file corrupted: {path}: {e}", details=str(e))
        except OSError as e:
            raise MalformedInputError(f"Failed to read snapshot file {path}: {e}", details=str(e))

        window_days = None
        if isinstance(data, dict):
            window_days = data.get('windowDays')
            if window_days is not None and (
                isinstance(window_days, bool) or not isinstance(window_days, int) or window_days < 1
            ):
                raise MalformedInputError(f"Invalid windowDays in {path}: {window_days!r}")
            records = data.get('snapshots')
        else:
            records = data

        if not isinstance(records, list):
            raise MalformedInputError(f"Snapshot file {path} must contain a list of snapshot records")

        snapshots = []
        for position, record in enumerate(records):
            try:
                snapshots.append(self._deserialize_snapshot(record))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                raise MalformedInputError(
                    f"Malformed snapshot record #{position} in {path}: {e}", details=str(e)
                )

        logger.info(f"Loaded {len(snapshots)} snapshots from {path}")
        return SnapshotCollection(snapshots=tuple(snapshots), window_days=window_days)

    def _serialize_snapshot(self, snapshot: ResourceSnapshot) -> Dict[str, Any]:
        """Serialize a ResourceSnapshot to a dictionary."""
        return {
            'resourceId': snapshot.resource_id,
            'resourceKind': snapshot.kind.value,
            'billingMode': snapshot.billing_mode,
            'readCapacityUnits': snapshot.read_capacity_units,
            'writeCapacityUnits': snapshot.write_capacity_units,
            'storageBytes': snapshot.storage_bytes,
            'itemCount': snapshot.item_count,
            'avgConsumedRead': snapshot.avg_consumed_read,
            'avgConsumedWrite': snapshot.avg_consumed_write,
            'cpuUtilization': snapshot.cpu_utilization,
            'freeStorageBytes': snapshot.free_storage_bytes,
            'connections': snapshot.connection_count,
            'metricsAvailable': snapshot.metrics_available,
            'descriptionAvailable': snapshot.description_available,
            'arn': snapshot.arn,
            'instanceClass': snapshot.instance_class,
            'engine': snapshot.engine,
            'storageType': snapshot.storage_type,
            'allocatedStorageGB': snapshot.allocated_storage_gb,
            'replicaCount': snapshot.replica_count,
            'multiAZ': snapshot.multi_az,
        }

    def _deserialize_snapshot(self, data: Dict[str, Any]) -> ResourceSnapshot:
        """Deserialize a dictionary to a ResourceSnapshot.

        Numeric fields missing from the record default to zero. Flags must be
        JSON booleans.
        """
        return ResourceSnapshot(
            resource_id=str(data['resourceId']),
            kind=ResourceKind(data['resourceKind']),
            billing_mode=data.get('billingMode') or 'UNKNOWN',
            read_capacity_units=int(data.get('readCapacityUnits') or 0),
            write_capacity_units=int(data.get('writeCapacityUnits') or 0),
            storage_bytes=int(data.get('storageBytes') or 0),
            item_count=int(data.get('itemCount') or 0),
            avg_consumed_read=float(data.get('avgConsumedRead') or 0.0),
            avg_consumed_write=float(data.get('avgConsumedWrite') or 0.0),
            cpu_utilization=float(data.get('cpuUtilization') or 0.0),
            free_storage_bytes=float(data.get('freeStorageBytes') or 0.0),
            connection_count=float(data.get('connections') or 0.0),
            metrics_available=_flag(data, 'metricsAvailable', False),
            description_available=_flag(data, 'descriptionAvailable', True),
            arn=data.get('arn'),
            instance_class=data.get('instanceClass'),
            engine=data.get('engine'),
            storage_type=data.get('storageType'),
            allocated_storage_gb=float(data.get('allocatedStorageGB') or 0.0),
            replica_count=int(data.get('replicaCount') or 0),
            multi_az=_flag(data, 'multiAZ', False),
        )
