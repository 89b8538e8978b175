"""项目内使用的自定义异常定义。"""


class DensityConverterError(Exception):
    """基础异常类型。"""


class InvalidConfigurationError(DensityConverterError):
    """配置不合法时抛出。"""


class ImageLoadingError(DensityConverterError):
    """源图片无法读取或解码。"""


class ImageWriteError(DensityConverterError):
    """输出写入失败。"""


class FolderCreationError(DensityConverterError):
    """输出目录无法创建。"""


class PostProcessingError(DensityConverterError):
    """外部后处理工具执行失败。"""
