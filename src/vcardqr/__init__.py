"""
vcardqr
=======

Offline vCard 3.0 builder and QR code renderer.

Этот пакет предоставляет:
    - Построение записи vCard 3.0 из полей контакта (имя, организация,
      телефоны, email, адрес, сайт, соцсети) с экранированием по RFC 2426
    - Кодирование записи в QR-код: векторный SVG и растровый PNG
    - Конвейер рендеринга с отбрасыванием устаревших результатов
    - Имена файлов и MIME-типы для экспорта

Пример базового использования:
    >>> from vcardqr import ContactRecord, PersonalInfo, PhoneEntry, build_vcard
    >>> from vcardqr import EncodeOptions, encode_vector
    >>>
    >>> record = ContactRecord(
    ...     personal=PersonalInfo(given_name="Jane", family_name="Doe"),
    ...     phones=[PhoneEntry("+41791234567", "CELL")],
    ...     email="jane@acme.com",
    ... )
    >>> text = build_vcard(record)
    >>> svg = encode_vector(text, EncodeOptions(error_correction="Q"))

Конфигурация:
    >>> from vcardqr import load_config
    >>> config = load_config()
    >>> config["error_correction"]
    'M'

Уровень логирования задаётся переменной окружения VCARDQR_LOG_LEVEL
(DEBUG, INFO, WARNING, ERROR, CRITICAL).

Версия: 0.1.0
Лицензия: MIT
Python: 3.11+
"""

import json
import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional

# =============================================================================
# МЕТАДАННЫЕ ВЕРСИИ
# =============================================================================

__version__ = "0.1.0"
__author__ = "vcardqr Development Team"
__description__ = "Offline vCard 3.0 builder and QR code renderer"
__license__ = "MIT"
__python_requires__ = ">=3.11"

# Компоненты семантической версии
VERSION_MAJOR = 0
VERSION_MINOR = 1
VERSION_PATCH = 0

# =============================================================================
# ПРОВЕРКА ВЕРСИИ PYTHON
# =============================================================================

if sys.version_info < (3, 11):
    raise RuntimeError(
        f"vcardqr требует Python 3.11 или выше. "
        f"Текущая версия: {sys.version_info.major}."
        f"{sys.version_info.minor}.{sys.version_info.micro}"
    )

# =============================================================================
# КОНФИГУРАЦИЯ ЛОГИРОВАНИЯ
# =============================================================================

_PACKAGE_LOGGER = "vcardqr"


def _setup_logging() -> None:
    """
    Инициализировать общепакетную конфигурацию логирования.

    Настраивает логгер пакета "vcardqr" с:
    - Консольным обработчиком (stderr) для WARNING и выше
    - Ротирующим файловым обработчиком, если задана переменная
      окружения VCARDQR_LOG_FILE
    - Форматом: [время] УРОВЕНЬ [модуль.функция:строка] сообщение

    Уровень берётся из VCARDQR_LOG_LEVEL (по умолчанию INFO).
    Функция идемпотентна: повторные вызовы ничего не меняют.
    """
    log_level_str = os.environ.get("VCARDQR_LOG_LEVEL", "INFO").upper()

    log_level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    log_level = log_level_map.get(log_level_str, logging.INFO)

    root_logger = logging.getLogger(_PACKAGE_LOGGER)
    if root_logger.handlers:
        return

    root_logger.setLevel(log_level)

    formatter = logging.Formatter(
        fmt=("[%(asctime)s] %(levelname)-8s " "[%(name)s.%(funcName)s:%(lineno)d] %(message)s"),
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Консольный обработчик (stderr) - WARNING и выше
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    log_file = os.environ.get("VCARDQR_LOG_FILE")
    if log_file:
        try:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                filename=log_path,
                maxBytes=5 * 1024 * 1024,  # 5 МБ
                backupCount=3,
                encoding="utf-8",
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.warning(
                "Не удалось инициализировать файловое логирование: %s. "
                "Используется только консоль.",
                e,
            )

    root_logger.propagate = False


def get_logger(module_name: str) -> logging.Logger:
    """
    Получить логгер в пространстве имён пакета.

    Логгеры именуются как 'vcardqr.<module_name>' и наследуют
    обработчики логгера пакета.

    Аргументы:
        module_name: Имя модуля, обычно `__name__`.

    Возвращает:
        Экземпляр logging.Logger.

    Пример:
        >>> logger = get_logger("cli")
        >>> logger.name
        'vcardqr.cli'
    """
    if module_name == _PACKAGE_LOGGER or module_name.startswith(_PACKAGE_LOGGER + "."):
        return logging.getLogger(module_name)
    if module_name == "__main__":
        return logging.getLogger(f"{_PACKAGE_LOGGER}.main")
    clean_name = module_name.lstrip(".")
    return logging.getLogger(f"{_PACKAGE_LOGGER}.{clean_name}")


# =============================================================================
# УПРАВЛЕНИЕ КОНФИГУРАЦИЕЙ
# =============================================================================

_DEFAULT_CONFIG: Dict[str, Any] = {
    "error_correction": "M",
    "margin": 2,
    "preview_size": 320,
    "download_size": 1024,
    "foreground": "#000000",
    "warn_threshold": 900,
    "log_level": "INFO",
}

DEFAULT_CONFIG_FILENAME = "vcardqr.json"


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Загрузить конфигурацию из JSON-файла поверх значений по умолчанию.

    Ключи конфигурации:
        - error_correction: str - Уровень коррекции ошибок (L, M, Q, H)
        - margin: int - Ширина тихой зоны в модулях
        - preview_size: int - Размер превью в пикселях
        - download_size: int - Размер PNG для экспорта в пикселях
        - foreground: str - Цвет модулей QR-кода
        - warn_threshold: int - Длина vCard, после которой выдаётся
          предупреждение о плотности кода
        - log_level: str - Уровень логирования

    Аргументы:
        config_path: Путь к файлу. Если None, ищется 'vcardqr.json'
                    в текущем каталоге.

    Возвращает:
        Словарь со всеми ключами по умолчанию, переопределёнными
        пользовательскими значениями. Недопустимый или нечитаемый файл
        логируется как предупреждение, используются значения по умолчанию.
    """
    logger = get_logger(__name__)

    if config_path is None:
        config_path = Path(DEFAULT_CONFIG_FILENAME)

    config = _DEFAULT_CONFIG.copy()

    if config_path.exists():
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                user_config = json.load(f)

            if not isinstance(user_config, dict):
                raise ValueError(
                    f"Файл конфигурации должен содержать JSON-объект, "
                    f"получен {type(user_config).__name__}"
                )

            config.update(user_config)

            logger.info("Конфигурация загружена из %s", config_path)
            logger.debug("Конфигурация: %s", config)

        except json.JSONDecodeError as e:
            logger.warning(
                "Не удалось разобрать %s: недопустимый JSON в строке %d, столбце %d. "
                "Используется конфигурация по умолчанию.",
                config_path,
                e.lineno,
                e.colno,
            )
        except OSError as e:
            logger.warning(
                "Не удалось прочитать %s: %s. Используется конфигурация по умолчанию.",
                config_path,
                e,
            )
        except ValueError as e:
            logger.warning(
                "Недопустимый формат конфигурации: %s. "
                "Используется конфигурация по умолчанию.",
                e,
            )
    else:
        logger.debug(
            "Файл конфигурации %s не найден. Используется конфигурация по умолчанию.",
            config_path,
        )

    return config


def check_dependencies() -> Dict[str, bool]:
    """
    Проверить, установлены ли зависимости рендеринга.

    Возвращает:
        Словарь: имя пакета -> доступен ли он.

    Пример:
        >>> deps = check_dependencies()
        >>> if not deps["qrcode"]:
        ...     print("QR-коды недоступны: pip install qrcode")
    """
    dependencies: Dict[str, bool] = {}

    try:
        import qrcode  # noqa: F401

        dependencies["qrcode"] = True
    except ImportError:
        dependencies["qrcode"] = False

    try:
        import PIL  # noqa: F401

        dependencies["pillow"] = True
    except ImportError:
        dependencies["pillow"] = False

    return dependencies


# =============================================================================
# ИНИЦИАЛИЗАЦИЯ ПАКЕТА
# =============================================================================

# Логирование настраивается до импорта остальных модулей
_setup_logging()

# =============================================================================
# ПУБЛИЧНЫЙ API
# =============================================================================

from .barcodegen.qr_bridge import (  # noqa: E402
    BACKGROUND,
    DOWNLOAD_SIZE,
    PREVIEW_SIZE,
    EncodeOptions,
    EncodingFailure,
    encode_raster,
    encode_vector,
    raster_to_png,
)
from .export import ExportError, ExportFile, artifact_filename, safe_filename  # noqa: E402
from .model.contact import ContactRecord, PersonalInfo, PhoneEntry, SocialEntry  # noqa: E402
from .model.enums import ErrorCorrectionLevel, ExportFormat, PhoneKind, SocialKind  # noqa: E402
from .pipeline import EncodedArtifact, RenderPipeline, RenderResult  # noqa: E402
from .vcard.builder import build_vcard, ensure_url, escape_value, unescape_value  # noqa: E402

__all__ = [
    # Метаданные версии
    "__version__",
    "__author__",
    "__description__",
    "__license__",
    "__python_requires__",
    "VERSION_MAJOR",
    "VERSION_MINOR",
    "VERSION_PATCH",
    # Утилиты
    "get_logger",
    "load_config",
    "check_dependencies",
    # Модель
    "ContactRecord",
    "PersonalInfo",
    "PhoneEntry",
    "SocialEntry",
    "PhoneKind",
    "SocialKind",
    "ErrorCorrectionLevel",
    "ExportFormat",
    # vCard
    "build_vcard",
    "escape_value",
    "unescape_value",
    "ensure_url",
    # QR
    "EncodeOptions",
    "EncodingFailure",
    "encode_vector",
    "encode_raster",
    "raster_to_png",
    "BACKGROUND",
    "PREVIEW_SIZE",
    "DOWNLOAD_SIZE",
    # Конвейер и экспорт
    "RenderPipeline",
    "RenderResult",
    "EncodedArtifact",
    "ExportFile",
    "ExportError",
    "safe_filename",
    "artifact_filename",
]

_logger = get_logger(__name__)
_logger.debug("vcardqr v%s инициализирован", __version__)
