"""
attachment_downloader unit tests

Covers:
    - single download: decode, naming, collisions, measured size
    - failure modes: missing data, bad base64, transport error, bad custom name
    - batch: ordering, fault isolation, counts, sender/year subfolders
"""
import pytest

from conftest import encode, make_http_error
from gmail_mcp.errors import (
    AttachmentDecodeError,
    GmailTransportError,
    InvalidFilenameError,
    NoAttachmentDataError,
)
from gmail_mcp.gmail_engine.attachment_downloader import decode_attachment_data, message_year
from gmail_mcp.gmail_engine.models import DownloadRequest

PDF_BYTES = b"%PDF-1.4 fake pdf body \xff\xfe\x00"


def request(attachment_id="att-1", filename="report.pdf", **kwargs):
    return DownloadRequest(message_id="msg-1", attachment_id=attachment_id, filename=filename, **kwargs)


class TestDecode:

    def test_decodes_urlsafe(self):
        data = b"\xfb\xff\xfe binary"
        assert decode_attachment_data(encode(data)) == data

    def test_tolerates_missing_padding(self):
        assert decode_attachment_data(encode(b"ab").rstrip("=")) == b"ab"

    def test_rejects_garbage(self):
        with pytest.raises(AttachmentDecodeError):
            decode_attachment_data("a")


class TestSingleDownload:

    def test_writes_decoded_bytes(self, downloader, fake_gmail, download_dir):
        fake_gmail.attachments[("msg-1", "att-1")] = {'size': 999999, 'data': encode(PDF_BYTES)}

        result = downloader.download(request())

        assert result.success
        assert result.saved_as == "report.pdf"
        assert result.full_path == str(download_dir / "report.pdf")
        assert (download_dir / "report.pdf").read_bytes() == PDF_BYTES
        # measured, not declared
        assert result.size == len(PDF_BYTES)
        assert result.downloaded_at.endswith("Z")

    def test_existing_file_gets_numbered_name(self, downloader, fake_gmail, download_dir):
        download_dir.mkdir(parents=True)
        (download_dir / "report.pdf").write_bytes(b"already here")
        fake_gmail.attachments[("msg-1", "att-1")] = {'data': encode(PDF_BYTES)}

        result = downloader.download(request())

        assert result.saved_as == "report_1.pdf"
        assert (download_dir / "report.pdf").read_bytes() == b"already here"

    def test_save_path_overrides_default(self, downloader, fake_gmail, tmp_path):
        fake_gmail.attachments[("msg-1", "att-1")] = {'data': encode(b"x")}
        target = tmp_path / "elsewhere" / "deeper"

        result = downloader.download(request(save_path=str(target)))

        assert (target / "report.pdf").exists()
        assert result.full_path == str(target / "report.pdf")

    def test_filename_is_sanitized(self, downloader, fake_gmail):
        fake_gmail.attachments[("msg-1", "att-1")] = {'data': encode(b"x")}
        result = downloader.download(request(filename="Q3: plan / draft?.pdf"))
        assert result.saved_as == "Q3_plan_draft_.pdf"

    def test_all_invalid_filename_falls_back(self, downloader, fake_gmail):
        fake_gmail.attachments[("msg-1", "att-1")] = {'data': encode(b"x")}
        result = downloader.download(request(filename="???"))
        assert result.saved_as == "untitled"

    def test_custom_filename_used_as_given(self, downloader, fake_gmail):
        fake_gmail.attachments[("msg-1", "att-1")] = {'data': encode(b"x")}
        result = downloader.download(request(custom_filename="Invoice March.pdf"))
        assert result.saved_as == "Invoice March.pdf"
        assert result.to_dict()['originalFilename'] == "report.pdf"

    @pytest.mark.parametrize("name", ["../escape.pdf", "a/b.pdf", "..", "c\\d.pdf"])
    def test_custom_filename_with_path_rejected(self, downloader, fake_gmail, name):
        fake_gmail.attachments[("msg-1", "att-1")] = {'data': encode(b"x")}
        with pytest.raises(InvalidFilenameError):
            downloader.download(request(custom_filename=name))

    def test_empty_payload(self, downloader, fake_gmail):
        fake_gmail.attachments[("msg-1", "att-1")] = {'size': 0}
        with pytest.raises(NoAttachmentDataError):
            downloader.download(request())

    def test_transport_failure(self, downloader, fake_gmail):
        fake_gmail.attachments[("msg-1", "att-1")] = make_http_error(500, "Backend Error")
        with pytest.raises(GmailTransportError) as excinfo:
            downloader.download(request())
        assert excinfo.value.status == 500

    def test_result_payload_keys(self, downloader, fake_gmail):
        fake_gmail.attachments[("msg-1", "att-1")] = {'data': encode(b"12345")}
        payload = downloader.download(request()).to_dict()
        assert set(payload) == {
            'success', 'messageId', 'attachmentId', 'originalFilename',
            'savedAs', 'fullPath', 'size', 'sizeFormatted', 'downloadedAt',
        }
        assert payload['sizeFormatted'] == "5 B"


class TestBatch:

    def test_middle_failure_is_isolated(self, downloader, fake_gmail, download_dir):
        fake_gmail.attachments[("msg-1", "a")] = {'data': encode(b"first")}
        fake_gmail.attachments[("msg-1", "b")] = make_http_error(404)
        fake_gmail.attachments[("msg-1", "c")] = {'data': encode(b"third")}
        requests = [
            request("a", "one.txt"),
            request("b", "two.txt"),
            request("c", "three.txt"),
        ]

        summary = downloader.run_batch(requests)
        payload = summary.to_dict()

        assert payload['summary'] == {
            'total': 3, 'successful': 2, 'failed': 1, 'downloadPath': str(download_dir),
        }
        results = payload['results']
        assert [r['attachmentId'] for r in results] == ["a", "b", "c"]
        assert results[1]['success'] is False
        assert results[1]['error']
        assert results[1]['filename'] == "two.txt"
        assert results[0]['result']['savedAs'] == "one.txt"
        assert (download_dir / "three.txt").read_bytes() == b"third"

    def test_counts_add_up(self, downloader, fake_gmail):
        fake_gmail.attachments[("msg-1", "ok")] = {'data': encode(b"x")}
        requests = [request("ok", "f.txt"), request("missing", "g.txt"), request("ok", "f.txt")]

        summary = downloader.run_batch(requests)

        assert summary.successful + summary.failed == summary.total == len(requests)
        assert [r.saved_as for r in summary.results if r.success] == ["f.txt", "f_1.txt"]

    def test_dangling_symlink_does_not_stall_batch(self, downloader, fake_gmail, download_dir):
        download_dir.mkdir(parents=True, exist_ok=True)
        (download_dir / "a.txt").symlink_to(download_dir / "gone.txt")
        fake_gmail.attachments[("msg-1", "a")] = {'data': encode(b"first")}
        fake_gmail.attachments[("msg-1", "b")] = {'data': encode(b"second")}

        summary = downloader.run_batch([request("a", "a.txt"), request("b", "b.txt")])

        assert summary.successful == 2
        assert [r.saved_as for r in summary.results] == ["a_1.txt", "b.txt"]
        assert (download_dir / "a_1.txt").read_bytes() == b"first"
        assert (download_dir / "a.txt").is_symlink()

    def test_empty_batch(self, downloader):
        summary = downloader.run_batch([])
        assert summary.to_dict()['summary']['total'] == 0

    def test_unexpected_exception_is_recorded(self, downloader, fake_gmail, monkeypatch):
        def boom(message_id, attachment_id):
            raise RuntimeError("socket closed")
        monkeypatch.setattr(downloader.gmail_reader, "get_attachment", boom)

        summary = downloader.run_batch([request()])

        assert summary.results[0].error == "socket closed"

    def test_subfolders_by_sender_and_year(self, downloader, fake_gmail, tmp_path):
        fake_gmail.messages["msg-1"] = {
            'id': 'msg-1',
            'internalDate': '1709251200000',  # 2024-03-01
            'payload': {'headers': [{'name': 'From', 'value': 'Jane Doe <jane@example.com>'}]},
        }
        fake_gmail.attachments[("msg-1", "att-1")] = {'data': encode(b"x")}

        summary = downloader.run_batch([request()], save_path=str(tmp_path / "base"), create_subfolders=True)

        expected = tmp_path / "base" / "Jane_Doe_jane" / "2024" / "report.pdf"
        assert summary.results[0].full_path == str(expected)
        assert expected.exists()

    def test_subfolder_without_date_or_sender(self, downloader, fake_gmail, tmp_path):
        fake_gmail.messages["msg-1"] = {'id': 'msg-1', 'payload': {'headers': []}}
        fake_gmail.attachments[("msg-1", "att-1")] = {'data': encode(b"x")}

        summary = downloader.run_batch([request()], save_path=str(tmp_path), create_subfolders=True)

        assert summary.results[0].success
        assert (tmp_path / "Unknown" / "1970" / "report.pdf").exists()

    def test_metadata_failure_only_fails_that_item(self, downloader, fake_gmail, tmp_path):
        fake_gmail.messages["msg-2"] = {'id': 'msg-2', 'internalDate': '0',
                                        'payload': {'headers': [{'name': 'from', 'value': 'bob@x.org'}]}}
        fake_gmail.attachments[("msg-2", "att-2")] = {'data': encode(b"y")}
        requests = [
            request(),  # msg-1 metadata lookup fails
            DownloadRequest(message_id="msg-2", attachment_id="att-2", filename="b.txt"),
        ]

        summary = downloader.run_batch(requests, save_path=str(tmp_path), create_subfolders=True)

        assert [r.success for r in summary.results] == [False, True]
        assert (tmp_path / "bob" / "1970" / "b.txt").exists()


@pytest.mark.parametrize("message,year", [
    ({'internalDate': '1709251200000'}, 2024),
    ({'internalDate': '0'}, 1970),
    ({}, 1970),
    ({'internalDate': 'not-a-number'}, 1970),
])
def test_message_year(message, year):
    assert message_year(message) == year
