from .aggregation import aggregate_by_sku
from .columns import active_columns, default_export_config, load_export_config, save_export_config
from .exporter import ExportResult, export_aggregated_csv, export_aggregated_xlsx, export_line_items_csv
from .inventory_update import export_inventory_update

__all__ = [
    "ExportResult",
    "active_columns",
    "aggregate_by_sku",
    "default_export_config",
    "export_aggregated_csv",
    "export_aggregated_xlsx",
    "export_inventory_update",
    "export_line_items_csv",
    "load_export_config",
    "save_export_config",
]
