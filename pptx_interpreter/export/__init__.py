"""Export of inventories to JSON."""

from .json_exporter import InventoryExporter, group_by_shape, inventory_to_dict

__all__ = ["InventoryExporter", "group_by_shape", "inventory_to_dict"]
