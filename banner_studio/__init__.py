"""banner_studio - 横幅合成与导出流水线.

将背景图、Logo 与样式文字合成为横幅，并按任意目标分辨率导出为 PNG/JPEG/PDF。
"""

__version__ = "1.0.0"
