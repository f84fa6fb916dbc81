from io import BytesIO

from pytest import fixture
from xlsxwriter import Workbook

from xlsxwriter_reporter.config import reset_config
from xlsxwriter_reporter.sink import WorkbookSink


@fixture(autouse=True)
def default_config():
    yield reset_config()
    reset_config()


@fixture
def sink():
    dump = BytesIO()

    wb = Workbook(dump, {'constant_memory': True})
    result = WorkbookSink.from_wb(wb)
    result.add_worksheet("TestSheet")

    yield result

    wb.close()
