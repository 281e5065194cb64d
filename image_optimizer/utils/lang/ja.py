"""Japanese UI strings."""

STRINGS: dict[str, str] = {
    # Batch
    "Waiting...": "待機中...",
    "Cancelled": "キャンセルされました",

    # Single-item stages
    "Preparing file...": "ファイルの準備をしています...",
    "Starting format conversion...": "フォーマット変換を開始しています...",
    "Applying quality settings...": "画質調整を適用しています...",
    "Resizing...": "リサイズ処理を実行しています...",
    "Applying optimizations...": "最適化を適用しています...",
    "Saving file...": "ファイルを保存しています...",
    "Conversion complete!": "変換が完了しました！",

    # Errors
    "Conversion was cancelled": "変換がキャンセルされました",
    "Conversion failed": "変換に失敗しました",
    "No output destination was selected": "出力先が選択されませんでした",
    "Output file not found": "出力ファイルが見つかりません",
    "FFmpeg not found. Please install FFmpeg.": "FFmpegが見つかりません。FFmpegをインストールしてください。",
}
