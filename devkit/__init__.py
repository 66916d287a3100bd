"""devkit - hooks / utils 组件脚手架工具"""

__version__ = "0.1.0"
