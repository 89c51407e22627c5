from .extension import get_extensions, mapping_extension, read_mapping, write_mapping

__all__ = ['get_extensions', 'mapping_extension', 'read_mapping', 'write_mapping']
