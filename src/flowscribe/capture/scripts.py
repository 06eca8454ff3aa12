"""
In-page JavaScript.

SNAPSHOT_JS serializes an element and its ancestors into the dictionaries
ElementSnapshot.from_dict understands. CAPTURE_JS installs capture-phase
listeners in every frame and forwards events to the exposed binding.
"""

BINDING_NAME = "__flowscribeEmit"

SNAPSHOT_JS = r"""
(el, maxDepth) => {
  const cssPath = (node) => {
    const parts = [];
    let cur = node;
    while (cur && cur.nodeType === 1 && cur !== cur.ownerDocument.documentElement) {
      if (cur.id) { parts.unshift('#' + CSS.escape(cur.id)); break; }
      let sel = cur.tagName.toLowerCase();
      const parent = cur.parentElement;
      if (parent) {
        const same = Array.from(parent.children).filter(c => c.tagName === cur.tagName);
        if (same.length > 1) sel += ':nth-of-type(' + (same.indexOf(cur) + 1) + ')';
      }
      parts.unshift(sel);
      cur = parent;
    }
    return parts.join(' > ');
  };
  const directText = (node) => Array.from(node.childNodes)
    .filter(n => n.nodeType === 3)
    .map(n => n.textContent || '')
    .join('').trim();
  const labelText = (node) => {
    if (node.id) {
      const forLabel = node.ownerDocument.querySelector('label[for="' + CSS.escape(node.id) + '"]');
      if (forLabel && forLabel.textContent) return forLabel.textContent.trim();
    }
    if (node.labels && node.labels.length > 0 && node.labels[0].textContent) {
      return node.labels[0].textContent.trim();
    }
    const container = node.closest && node.closest('label');
    return container && container !== node ? (container.textContent || '').trim() : '';
  };
  const snap = (node) => {
    const full = (node.textContent || '').trim();
    return {
      tag: node.tagName ? node.tagName.toLowerCase() : '',
      role: node.getAttribute('role') || '',
      id: node.id || '',
      classes: typeof node.className === 'string' ? node.className.split(/\s+/).filter(Boolean) : [],
      ariaLabel: node.getAttribute('aria-label') || '',
      title: node.getAttribute('title') || '',
      placeholder: node.getAttribute('placeholder') || '',
      name: node.getAttribute('name') || '',
      controlName: node.getAttribute('data-dyn-controlname') || '',
      testId: node.getAttribute('data-test-id') || node.getAttribute('data-testid') || node.getAttribute('data-qa') || '',
      directText: directText(node).slice(0, 200),
      text: full.length < 100 ? full : '',
      labelText: labelText(node),
      inputType: node.getAttribute('type') || '',
      path: cssPath(node),
    };
  };
  const chain = [];
  let cur = el;
  while (cur && cur.nodeType === 1 && chain.length <= maxDepth) {
    chain.push(snap(cur));
    if (cur.tagName === 'BODY') break;
    cur = cur.parentElement;
  }
  return chain;
}
"""

AX_FALLBACK_JS = r"""
(el) => {
  const implicit = {A: 'link', BUTTON: 'button', SELECT: 'combobox', TEXTAREA: 'textbox', LI: 'listitem'};
  let role = el.getAttribute('role') || implicit[el.tagName] || '';
  if (!role && el.tagName === 'INPUT') {
    const t = (el.getAttribute('type') || 'text').toLowerCase();
    role = {checkbox: 'checkbox', radio: 'radio', button: 'button', submit: 'button'}[t] || 'textbox';
  }
  if (!role) return null;
  const name = el.getAttribute('aria-label') || (el.labels && el.labels[0] ? el.labels[0].textContent.trim() : '')
    || ((el.textContent || '').trim().length < 80 ? (el.textContent || '').trim() : '');
  return {role, name};
}
"""

CAPTURE_JS = r"""
(() => {
  if (window.__flowscribeInstalled) return;
  window.__flowscribeInstalled = true;
  const snapshot = %(snapshot)s;
  const MAX_DEPTH = %(depth)d;
  const emit = (payload) => {
    try {
      if (window.%(binding)s) window.%(binding)s(JSON.stringify(payload));
    } catch (e) { /* page is unloading */ }
  };
  const describe = (target) => ({chain: snapshot(target, MAX_DEPTH), frameUrl: location.href});
  document.addEventListener('click', (e) => {
    if (!(e.target instanceof Element)) return;
    emit({kind: 'click', timestamp: Date.now() / 1000, clientX: e.clientX, element: describe(e.target)});
  }, true);
  document.addEventListener('input', (e) => {
    const t = e.target;
    if (!(t instanceof Element) || !('value' in t) || t.tagName === 'SELECT') return;
    emit({kind: 'input', timestamp: Date.now() / 1000, value: String(t.value), element: describe(t)});
  }, true);
  document.addEventListener('change', (e) => {
    const t = e.target;
    if (!(t instanceof Element) || t.tagName !== 'SELECT') return;
    emit({kind: 'change', timestamp: Date.now() / 1000, value: String(t.value), element: describe(t)});
  }, true);
})();
"""


def build_capture_script(max_depth: int) -> str:
    """Render CAPTURE_JS with the snapshot serializer and ancestor depth."""
    return CAPTURE_JS % {
        "snapshot": SNAPSHOT_JS.strip(),
        "depth": max_depth,
        "binding": BINDING_NAME,
    }
