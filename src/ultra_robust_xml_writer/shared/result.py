"""Statistics collected while a writer emits a document."""

from dataclasses import dataclass


@dataclass
class WriterStatistics:
    """Counters for one writer instance."""

    elements_written: int = 0
    attributes_written: int = 0
    namespace_declarations: int = 0
    text_nodes: int = 0
    comments: int = 0
    processing_instructions: int = 0
    cdata_sections: int = 0
    characters_emitted: int = 0
    fragments_emitted: int = 0
    max_depth: int = 0

    @property
    def average_fragment_length(self) -> float:
        """Average number of characters handed to the sink per append."""
        if self.fragments_emitted == 0:
            return 0.0
        return self.characters_emitted / self.fragments_emitted

    def record_depth(self, depth: int) -> None:
        """Track the deepest nesting seen so far."""
        if depth > self.max_depth:
            self.max_depth = depth

    def to_dict(self) -> dict:
        """Plain-dict view used for log records."""
        return {
            "elements_written": self.elements_written,
            "attributes_written": self.attributes_written,
            "namespace_declarations": self.namespace_declarations,
            "text_nodes": self.text_nodes,
            "comments": self.comments,
            "processing_instructions": self.processing_instructions,
            "cdata_sections": self.cdata_sections,
            "characters_emitted": self.characters_emitted,
            "max_depth": self.max_depth,
        }
