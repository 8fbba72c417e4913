from chatcompile.materializers.files import FileMaterializer, MaterializedFile
from chatcompile.materializers.images import ImageMaterializer, parse_data_url
from chatcompile.materializers.pool import gather_ordered

__all__ = [
    "FileMaterializer",
    "ImageMaterializer",
    "MaterializedFile",
    "gather_ordered",
    "parse_data_url",
]
