"""
どこで: `engine.render.shader`
何を: 太さ付きの線を描く GLSL 330 プログラム（頂点 → ジオメトリ → フラグメント）。
なぜ: コア プロファイルでは glLineWidth が 1px 固定のため、線分をジオメトリシェーダで四角形へ展開する。

uniform:
- `projection` (mat4): ピクセル座標（左上原点, y 下向き）→ クリップ空間
- `viewport` (vec2): 画面サイズ（ピクセル）。太さをピクセル単位で一定に保つため
- `line_thickness` (float): 線の太さ（ピクセル）
- `color` (vec4): RGBA 0–1
"""

from __future__ import annotations

from typing import Any

VERTEX_SHADER = """
#version 330
in vec2 in_vert;
uniform mat4 projection;
void main() {
    gl_Position = projection * vec4(in_vert, 0.0, 1.0);
}
"""

GEOMETRY_SHADER = """
#version 330
layout(lines) in;
layout(triangle_strip, max_vertices = 4) out;
uniform vec2 viewport;
uniform float line_thickness;
void main() {
    vec2 half_vp = viewport * 0.5;
    vec2 p0 = gl_in[0].gl_Position.xy * half_vp;
    vec2 p1 = gl_in[1].gl_Position.xy * half_vp;
    vec2 dir = p1 - p0;
    float len = length(dir);
    if (len < 1e-6) {
        return;
    }
    vec2 n = vec2(-dir.y, dir.x) / len * (line_thickness * 0.5);
    vec2 ext = dir / len * (line_thickness * 0.5);
    gl_Position = vec4((p0 - ext + n) / half_vp, 0.0, 1.0);
    EmitVertex();
    gl_Position = vec4((p0 - ext - n) / half_vp, 0.0, 1.0);
    EmitVertex();
    gl_Position = vec4((p1 + ext + n) / half_vp, 0.0, 1.0);
    EmitVertex();
    gl_Position = vec4((p1 + ext - n) / half_vp, 0.0, 1.0);
    EmitVertex();
    EndPrimitive();
}
"""

FRAGMENT_SHADER = """
#version 330
uniform vec4 color;
out vec4 frag_color;
void main() {
    frag_color = color;
}
"""


class Shader:
    @staticmethod
    def create_shader(ctx: Any) -> Any:
        """線描画用の moderngl Program を生成する。"""
        return ctx.program(
            vertex_shader=VERTEX_SHADER,
            geometry_shader=GEOMETRY_SHADER,
            fragment_shader=FRAGMENT_SHADER,
        )


__all__ = ["Shader", "VERTEX_SHADER", "GEOMETRY_SHADER", "FRAGMENT_SHADER"]
