"""图片工具函数模块.

提供 data URI 编解码、格式识别、模式转换和占位图生成等工具函数。
"""

from __future__ import annotations

import base64
import binascii
import io
from typing import Optional, Tuple
from urllib.parse import unquote_to_bytes

from PIL import Image, ImageDraw


# Pillow 格式名 -> MIME 类型
_FORMAT_MEDIA_TYPES = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "GIF": "image/gif",
    "WEBP": "image/webp",
    "BMP": "image/bmp",
    "TIFF": "image/tiff",
    "ICO": "image/x-icon",
}


def parse_data_uri(uri: str) -> Tuple[str, bytes]:
    """解析 data URI.

    Args:
        uri: 形如 ``data:<mime>;base64,<data>`` 的字符串

    Returns:
        (媒体类型, 字节数据)

    Raises:
        ValueError: 不是合法的 data URI
    """
    if not uri.startswith("data:") or "," not in uri:
        raise ValueError("不是合法的 data URI")

    header, payload = uri[5:].split(",", 1)
    params = header.split(";")
    media_type = params[0] or "text/plain"

    if "base64" in params[1:]:
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"data URI 的 base64 数据无效: {e}") from e
    else:
        data = unquote_to_bytes(payload)

    return media_type, data


def to_data_uri(data: bytes, media_type: str) -> str:
    """字节数据转 data URI.

    Args:
        data: 字节数据
        media_type: 媒体类型

    Returns:
        base64 编码的 data URI
    """
    b64 = base64.b64encode(data).decode("ascii")
    return f"data:{media_type};base64,{b64}"


def sniff_image_media_type(data: bytes) -> Optional[str]:
    """识别图片字节数据的媒体类型.

    Args:
        data: 图片字节数据

    Returns:
        媒体类型，无法识别返回 None
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            fmt = img.format
    except (OSError, ValueError, Image.DecompressionBombError):
        return None
    if fmt is None:
        return None
    return _FORMAT_MEDIA_TYPES.get(fmt, f"image/{fmt.lower()}")


def bytes_to_image(data: bytes) -> Image.Image:
    """字节数据转图片（强制加载到内存）.

    Args:
        data: 图片字节数据

    Returns:
        PIL Image 对象
    """
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


def ensure_rgba(image: Image.Image) -> Image.Image:
    """确保图片为 RGBA 模式.

    Args:
        image: PIL Image 对象

    Returns:
        RGBA 模式的图片
    """
    if image.mode != "RGBA":
        return image.convert("RGBA")
    return image


def add_solid_background(
    image: Image.Image,
    color: Tuple[int, int, int],
) -> Image.Image:
    """将透明图片合成到纯色背景上.

    Args:
        image: PIL Image 对象（通常是 RGBA 模式）
        color: RGB 背景颜色元组

    Returns:
        添加背景后的 RGB 模式图片
    """
    image = ensure_rgba(image)
    background = Image.new("RGB", image.size, color)
    background.paste(image, (0, 0), image.split()[3])
    return background


def create_checkerboard(
    size: Tuple[int, int],
    cell_size: int = 10,
    color1: Tuple[int, int, int] = (200, 200, 200),
    color2: Tuple[int, int, int] = (255, 255, 255),
) -> Image.Image:
    """创建棋盘格图片.

    Args:
        size: 图片尺寸
        cell_size: 格子大小
        color1: 颜色1
        color2: 颜色2

    Returns:
        RGBA 棋盘格图片
    """
    w, h = size
    cell_size = max(1, cell_size)
    img = Image.new("RGBA", size, (*color1, 255))
    draw = ImageDraw.Draw(img)

    for y in range(0, h, cell_size):
        for x in range(0, w, cell_size):
            if (x // cell_size + y // cell_size) % 2 == 0:
                draw.rectangle(
                    (x, y, x + cell_size - 1, y + cell_size - 1),
                    fill=(*color2, 255),
                )

    return img


def fit_cover(image: Image.Image, target_size: Tuple[int, int]) -> Image.Image:
    """覆盖适应：保持比例填满目标区域，居中裁剪.

    Args:
        image: 原图片
        target_size: 目标尺寸

    Returns:
        与目标尺寸完全一致的图片
    """
    target_w, target_h = target_size
    img_w, img_h = image.size
    scale = max(target_w / img_w, target_h / img_h)
    new_w = max(target_w, round(img_w * scale))
    new_h = max(target_h, round(img_h * scale))

    resized = image.resize((new_w, new_h), Image.Resampling.LANCZOS)

    x = (new_w - target_w) // 2
    y = (new_h - target_h) // 2
    return resized.crop((x, y, x + target_w, y + target_h))


def fit_contain(image: Image.Image, target_size: Tuple[int, int]) -> Image.Image:
    """包含适应：保持比例完整显示，居中放在透明画布上.

    Args:
        image: 原图片
        target_size: 目标尺寸

    Returns:
        目标尺寸的 RGBA 图片
    """
    target_w, target_h = target_size
    img_w, img_h = image.size
    scale = min(target_w / img_w, target_h / img_h)
    new_w = max(1, round(img_w * scale))
    new_h = max(1, round(img_h * scale))

    resized = ensure_rgba(image.resize((new_w, new_h), Image.Resampling.LANCZOS))

    result = Image.new("RGBA", target_size, (0, 0, 0, 0))
    x = (target_w - new_w) // 2
    y = (target_h - new_h) // 2
    result.paste(resized, (x, y), resized)
    return result
