from tickreplay.visual.data_group import DataGroup, PointTag, VisualPoint

__all__ = ["DataGroup", "PointTag", "VisualPoint"]
