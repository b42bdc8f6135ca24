"""User-visible strings.

English strings are their own keys; :class:`Translator` looks a key up in
the table of its locale and falls back to the key itself.
"""

from __future__ import annotations

UPLOADING = "🕔Uploading file..."
UPLOAD_FAILED = "❌upload failed, check dev console"
CMD_DELETE = "Delete uploaded image"
CMD_UPLOAD_ALL = "Upload all local or network images in current file"
ENABLE_FIRST = "Enable upload and configure the server URL and upload API first"
DELETED = "deleted"
DELETE_FAILED = "delete failed"
COUNT = "count"
LOCAL_UPLOADED = "Local image uploaded: {path}"
NETWORK_UPLOADING = "Uploading network image: {path}"
NETWORK_UPLOADED = "Network image uploaded: {url}"

_TABLES: dict[str, dict[str, str]] = {
    "en": {},
    "zh": {
        UPLOADING: "🕔正在上传文件...",
        UPLOAD_FAILED: "❌上传失败，请检查开发者工具",
        CMD_DELETE: "删除已上传的图片",
        CMD_UPLOAD_ALL: "上传当前文件中的所有本地或网络图片",
        ENABLE_FIRST: "请先启用功能并且配置好服务器地址和上传接口",
        DELETED: "删除成功",
        DELETE_FAILED: "删除失败",
        COUNT: "数量",
        LOCAL_UPLOADED: "本地图片上传成功: {path}",
        NETWORK_UPLOADING: "正在上传网络图片: {path}",
        NETWORK_UPLOADED: "网络图片上传成功: {url}",
    },
}


class Translator:
    """Translate the core's strings into *locale* (``"en"`` or ``"zh"``)."""

    def __init__(self, locale: str = "en") -> None:
        self.locale = locale
        self._table = _TABLES.get(locale, {})

    def __call__(self, key: str, **params: str) -> str:
        text = self._table.get(key, key)
        return text.format(**params) if params else text
