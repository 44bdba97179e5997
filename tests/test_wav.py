import io
import tempfile
import unittest
import wave
from pathlib import Path

import numpy as np

from nwa.stream import convert_nwa_file, decode_stream, decode_stream_to_wav
from nwa.wav import WAV_HEADER, build_wav_header, pcm_to_samples

from nwa_streams import build_stored_nwa


class TestWavFraming(unittest.TestCase):
    def test_header_layout(self) -> None:
        hdr = build_wav_header(2, 44100, 16, 1000)
        self.assertEqual(len(hdr), 44)
        self.assertEqual(hdr[:4], b"RIFF")
        self.assertEqual(hdr[8:16], b"WAVEfmt ")
        self.assertEqual(hdr[36:40], b"data")

    def test_stored_round_trip_all_formats(self) -> None:
        rng = np.random.default_rng(0)
        for channels in (1, 2):
            for bps in (8, 16):
                with self.subTest(channels=channels, bps=bps):
                    byps = bps // 8
                    rate = 22050
                    n_frames = 37
                    pcm = rng.integers(0, 256, size=n_frames * channels * byps, dtype=np.uint8).tobytes()

                    wav = decode_stream_to_wav(build_stored_nwa(pcm, channels=channels, bps=bps, freq=rate))

                    (riff, riff_size, wave_id, fmt_id, fmt_size, tag, ch, sr,
                     byte_rate, align, bits, data_id, data_size) = WAV_HEADER.unpack_from(wav, 0)
                    self.assertEqual((riff, wave_id, fmt_id, data_id), (b"RIFF", b"WAVE", b"fmt ", b"data"))
                    self.assertEqual(fmt_size, 16)
                    self.assertEqual(tag, 1)
                    self.assertEqual(ch, channels)
                    self.assertEqual(sr, rate)
                    self.assertEqual(bits, bps)
                    self.assertEqual(data_size, len(pcm))
                    self.assertEqual(riff_size, len(pcm) + 0x24)
                    self.assertEqual(byte_rate, byps * rate * channels)
                    self.assertEqual(align, byps * channels)
                    self.assertEqual(riff_size + 8, len(wav))
                    self.assertEqual(wav[44:], pcm)

                    with wave.open(io.BytesIO(wav), "rb") as wf:
                        self.assertEqual(wf.getnchannels(), channels)
                        self.assertEqual(wf.getsampwidth(), byps)
                        self.assertEqual(wf.getframerate(), rate)
                        self.assertEqual(wf.getnframes(), n_frames)
                        self.assertEqual(wf.readframes(n_frames), pcm)

    def test_samples_shape(self) -> None:
        pcm = np.array([[1, -1], [300, -300]], dtype="<i2").tobytes()
        out = decode_stream(build_stored_nwa(pcm, channels=2, bps=16))
        np.testing.assert_array_equal(out.samples(), np.array([[1, -1], [300, -300]], dtype=np.int16))
        self.assertEqual(pcm_to_samples(b"\x01\x02\x03", 1, 8).shape, (3, 1))

    def test_convert_file(self) -> None:
        pcm = bytes(range(64))
        with tempfile.TemporaryDirectory() as td:
            tmp = Path(td)
            src = tmp / "voice.nwa"
            dst = tmp / "out" / "voice.wav"
            src.write_bytes(build_stored_nwa(pcm, channels=1, bps=8, freq=8000))

            convert_nwa_file(str(src), str(dst))

            with wave.open(str(dst), "rb") as wf:
                self.assertEqual(wf.getframerate(), 8000)
                self.assertEqual(wf.readframes(wf.getnframes()), pcm)


if __name__ == "__main__":
    unittest.main()
