"""
Actuator Monitor Models - Typed structures for actuator payloads.

Fixed categories are dataclasses with zero defaults, dynamic categories are
plain keyed dictionaries. All output models serialize through to_dict().
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from actuator_monitor.exceptions import ActuatorError, NormalizationIssue


class MetricFamily(Enum):
    """Classification of a top-level metrics key."""
    FIXED = "fixed"
    STATUS_COUNT = "status_count"
    RESPONSE_TIME = "response_time"
    UNKNOWN = "unknown"


# =============================================================
# INTERMEDIATE RECORDS
# =============================================================


@dataclass
class RawFlatMetrics:
    """
    Flat record of the well-known metric keys.

    Field per dot-namespaced key; absent keys keep their zero value.
    """
    mem: int = 0
    mem_free: int = 0
    processors: int = 0
    instance_uptime: int = 0
    uptime: int = 0
    systemload_average: float = 0.0
    heap_committed: int = 0
    heap_init: int = 0
    heap_used: int = 0
    heap: int = 0
    nonheap_committed: int = 0
    nonheap_init: int = 0
    nonheap_used: int = 0
    nonheap: int = 0
    threads_peak: int = 0
    threads_daemon: int = 0
    threads_total_started: int = 0
    threads: int = 0
    classes: int = 0
    classes_loaded: int = 0
    classes_unloaded: int = 0
    gc_ps_scavenge_count: int = 0
    gc_ps_scavenge_time: int = 0
    gc_ps_marksweep_count: int = 0
    gc_ps_marksweep_time: int = 0
    httpsessions_max: int = 0
    httpsessions_active: int = 0
    datasource_primary_active: int = 0
    datasource_primary_usage: float = 0.0


# Mapping: JSON key -> (RawFlatMetrics field, value kind)
# Kinds: "uint" (non-negative integer), "int" (signed integer), "float"
FIXED_METRIC_KEYS: dict[str, tuple[str, str]] = {
    "mem": ("mem", "uint"),
    "mem.free": ("mem_free", "uint"),
    "processors": ("processors", "uint"),
    "instance.uptime": ("instance_uptime", "uint"),
    "uptime": ("uptime", "uint"),
    "systemload.average": ("systemload_average", "float"),
    "heap.committed": ("heap_committed", "uint"),
    "heap.init": ("heap_init", "uint"),
    "heap.used": ("heap_used", "uint"),
    "heap": ("heap", "uint"),
    "nonheap.committed": ("nonheap_committed", "uint"),
    "nonheap.init": ("nonheap_init", "uint"),
    "nonheap.used": ("nonheap_used", "uint"),
    "nonheap": ("nonheap", "uint"),
    "threads.peak": ("threads_peak", "uint"),
    "threads.daemon": ("threads_daemon", "uint"),
    "threads.totalStarted": ("threads_total_started", "uint"),
    "threads": ("threads", "uint"),
    "classes": ("classes", "uint"),
    "classes.loaded": ("classes_loaded", "uint"),
    "classes.unloaded": ("classes_unloaded", "uint"),
    "gc.ps_scavenge.count": ("gc_ps_scavenge_count", "uint"),
    "gc.ps_scavenge.time": ("gc_ps_scavenge_time", "uint"),
    "gc.ps_marksweep.count": ("gc_ps_marksweep_count", "uint"),
    "gc.ps_marksweep.time": ("gc_ps_marksweep_time", "uint"),
    "httpsessions.max": ("httpsessions_max", "int"),  # -1 means unlimited
    "httpsessions.active": ("httpsessions_active", "uint"),
    "datasource.primary.active": ("datasource_primary_active", "uint"),
    "datasource.primary.usage": ("datasource_primary_usage", "float"),
}


# =============================================================
# NORMALIZED METRICS
# =============================================================


@dataclass
class MemoryStats:
    total: int = 0
    free: int = 0


@dataclass
class UptimeStats:
    total: int = 0
    instance: int = 0


@dataclass
class MemoryPoolStats:
    """Heap or non-heap usage."""
    total: int = 0
    committed: int = 0
    init: int = 0
    used: int = 0


@dataclass
class ThreadStats:
    total: int = 0
    started: int = 0
    peak: int = 0
    daemon: int = 0


@dataclass
class ClassLoadingStats:
    total: int = 0
    loaded: int = 0
    unloaded: int = 0


@dataclass
class CollectorStats:
    count: int = 0
    time: int = 0


@dataclass
class GarbageCollectorStats:
    scavenge: CollectorStats = field(default_factory=CollectorStats)
    mark_sweep: CollectorStats = field(default_factory=CollectorStats)


@dataclass
class HttpSessionStats:
    max: int = 0
    active: int = 0


@dataclass
class DataSourceStats:
    primary_active: int = 0
    primary_usage: float = 0.0


@dataclass
class NormalizedMetrics:
    """
    Normalized statistics model - STRICT schema.

    Fixed categories are always present. The two dynamic mappings hold only
    entries discovered from `counter.status.*` and `gauge.response.*` keys.
    """
    memory: MemoryStats = field(default_factory=MemoryStats)
    processors: int = 0
    load_average: float = 0.0
    uptime: UptimeStats = field(default_factory=UptimeStats)
    heap: MemoryPoolStats = field(default_factory=MemoryPoolStats)
    non_heap: MemoryPoolStats = field(default_factory=MemoryPoolStats)
    threads: ThreadStats = field(default_factory=ThreadStats)
    classes: ClassLoadingStats = field(default_factory=ClassLoadingStats)
    gc: GarbageCollectorStats = field(default_factory=GarbageCollectorStats)
    http_sessions: HttpSessionStats = field(default_factory=HttpSessionStats)
    data_source: DataSourceStats = field(default_factory=DataSourceStats)

    # Dynamic families
    response_time: dict[str, float] = field(default_factory=dict)
    status_count: dict[str, dict[str, float]] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: RawFlatMetrics) -> "NormalizedMetrics":
        """Copy the fixed record into the nested model, one field at a time."""
        return cls(
            memory=MemoryStats(total=raw.mem, free=raw.mem_free),
            processors=raw.processors,
            load_average=raw.systemload_average,
            uptime=UptimeStats(total=raw.uptime, instance=raw.instance_uptime),
            heap=MemoryPoolStats(
                total=raw.heap,
                committed=raw.heap_committed,
                init=raw.heap_init,
                used=raw.heap_used,
            ),
            non_heap=MemoryPoolStats(
                total=raw.nonheap,
                committed=raw.nonheap_committed,
                init=raw.nonheap_init,
                used=raw.nonheap_used,
            ),
            threads=ThreadStats(
                total=raw.threads,
                started=raw.threads_total_started,
                peak=raw.threads_peak,
                daemon=raw.threads_daemon,
            ),
            classes=ClassLoadingStats(
                total=raw.classes,
                loaded=raw.classes_loaded,
                unloaded=raw.classes_unloaded,
            ),
            gc=GarbageCollectorStats(
                scavenge=CollectorStats(
                    count=raw.gc_ps_scavenge_count,
                    time=raw.gc_ps_scavenge_time,
                ),
                mark_sweep=CollectorStats(
                    count=raw.gc_ps_marksweep_count,
                    time=raw.gc_ps_marksweep_time,
                ),
            ),
            http_sessions=HttpSessionStats(
                max=raw.httpsessions_max,
                active=raw.httpsessions_active,
            ),
            data_source=DataSourceStats(
                primary_active=raw.datasource_primary_active,
                primary_usage=raw.datasource_primary_usage,
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "mem": {"total": self.memory.total, "free": self.memory.free},
            "processors": self.processors,
            "load_average": self.load_average,
            "uptime": {"total": self.uptime.total, "instance": self.uptime.instance},
            "heap": _pool_to_dict(self.heap),
            "non_heap": _pool_to_dict(self.non_heap),
            "threads": {
                "total": self.threads.total,
                "started": self.threads.started,
                "peak": self.threads.peak,
                "daemon": self.threads.daemon,
            },
            "classes": {
                "total": self.classes.total,
                "loaded": self.classes.loaded,
                "unloaded": self.classes.unloaded,
            },
            "gc": {
                "scavenge": {"count": self.gc.scavenge.count, "time": self.gc.scavenge.time},
                "marksweep": {"count": self.gc.mark_sweep.count, "time": self.gc.mark_sweep.time},
            },
            "http": {
                "max_sessions": self.http_sessions.max,
                "active_sessions": self.http_sessions.active,
            },
            "data_source": {
                "primary_active": self.data_source.primary_active,
                "primary_usage": self.data_source.primary_usage,
            },
            "response_time": dict(self.response_time),
            "status_count": {group: dict(entries) for group, entries in self.status_count.items()},
        }


def _pool_to_dict(pool: MemoryPoolStats) -> dict[str, int]:
    return {
        "total": pool.total,
        "committed": pool.committed,
        "init": pool.init,
        "used": pool.used,
    }


@dataclass
class NormalizationResult:
    """Best-effort metrics plus the advisory diagnostics collected on the way."""
    metrics: NormalizedMetrics
    diagnostics: list[NormalizationIssue] = field(default_factory=list)

    def has_issues(self) -> bool:
        """Check if any anomaly was collected."""
        return bool(self.diagnostics)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "metrics": self.metrics.to_dict(),
            "diagnostics": [issue.to_dict() for issue in self.diagnostics],
        }


# =============================================================
# HEALTH AND APPLICATION INFO
# =============================================================


@dataclass
class DiskSpaceHealth:
    status: str = ""
    total: int = 0
    free: int = 0
    threshold: int = 0


@dataclass
class DatabaseHealth:
    status: str = ""
    database: str = ""
    hello: int = 0


@dataclass
class HealthStatus:
    """Decoded /health payload."""
    status: str = ""
    disk_space: DiskSpaceHealth = field(default_factory=DiskSpaceHealth)
    db: DatabaseHealth = field(default_factory=DatabaseHealth)

    def is_up(self) -> bool:
        """Check if the application reports itself as UP."""
        return self.status.upper() == "UP"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "status": self.status,
            "diskSpace": {
                "status": self.disk_space.status,
                "total": self.disk_space.total,
                "free": self.disk_space.free,
                "threshold": self.disk_space.threshold,
            },
            "db": {
                "status": self.db.status,
                "database": self.db.database,
                "hello": self.db.hello,
            },
        }


@dataclass
class AppDetails:
    id: str = ""
    name: str = ""
    port: str = ""
    environment: str = ""


@dataclass
class ApplicationInfo:
    """Decoded /info payload."""
    app: AppDetails = field(default_factory=AppDetails)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "app": {
                "id": self.app.id,
                "name": self.app.name,
                "port": self.app.port,
                "environment": self.app.environment,
            },
        }


# =============================================================
# POLLING
# =============================================================


@dataclass
class PollSnapshot:
    """Everything collected from one application in one polling cycle."""
    base_url: str
    polled_at: datetime
    metrics: Optional[NormalizationResult] = None
    health: Optional[HealthStatus] = None
    app_info: Optional[ApplicationInfo] = None
    errors: dict[str, ActuatorError] = field(default_factory=dict)

    def is_complete(self) -> bool:
        """Check if no requested resource failed."""
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "base_url": self.base_url,
            "polled_at": self.polled_at.isoformat(),
            "metrics": self.metrics.metrics.to_dict() if self.metrics else None,
            "diagnostics": [i.to_dict() for i in self.metrics.diagnostics] if self.metrics else [],
            "health": self.health.to_dict() if self.health else None,
            "info": self.app_info.to_dict() if self.app_info else None,
            "errors": {resource: error.to_dict() for resource, error in self.errors.items()},
        }
