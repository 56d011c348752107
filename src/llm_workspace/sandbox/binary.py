"""二進位檔案偵測模組。

以啟發式方式判斷檔案是否為二進位內容，避免以文字方式讀寫造成資料損毀。
"""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# 取樣大小（bytes）
SAMPLE_SIZE = 1024


def looks_binary_bytes(data: bytes) -> bool:
    """判斷記憶體中的內容是否像二進位資料。

    只檢查前 SAMPLE_SIZE bytes 內是否出現 null byte。
    """
    return b'\x00' in data[:SAMPLE_SIZE]


def looks_binary(path: str | Path) -> bool:
    """判斷檔案是否像二進位檔案。

    讀取失敗時視為文字檔，交由後續實際操作回報錯誤。

    Args:
        path: 已通過路徑驗證的檔案路徑

    Returns:
        前 1024 bytes 內含 null byte 時回傳 True
    """
    try:
        with open(path, 'rb') as f:
            sample = f.read(SAMPLE_SIZE)
    except OSError as e:
        logger.debug('無法取樣檔案內容', extra={'path': str(path), 'error': str(e)})
        return False
    return looks_binary_bytes(sample)
